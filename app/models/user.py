from mongoengine import EmailField, StringField

from app.models.base import BaseDocument


class User(BaseDocument):
    """User document.

    Fields:
    - name (str): Display name
    - email (str, unique): Login identifier, stored trimmed and lower-cased
    - password_hash (str): Bcrypt hash, never rendered
    """
    name = StringField(required=True, null=False, min_length=1)
    email = EmailField(required=True, null=False, unique=True)
    password_hash = StringField(required=True, null=False)

    private_fields = ("password_hash",)

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["email"], "unique": True},
        ],
    }

    @classmethod
    def find_by_email(cls, email: str) -> "User | None":
        return cls.objects(email=email).first()

    def public_view(self) -> dict:
        return self.to_output(fields=["name", "email"])
