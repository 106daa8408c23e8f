from datetime import datetime, timezone
from typing import Any, Iterable

from bson.objectid import ObjectId
from mongoengine import DateTimeField, Document


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseDocument(Document):
    """Abstract document with audit timestamps and JSON-safe output."""
    created_at = DateTimeField(default=_utcnow, null=False)
    updated_at = DateTimeField(default=_utcnow, null=False)

    meta = {
        "abstract": True,
    }

    # Fields that must never leave the process, whatever `fields` asks for.
    private_fields: tuple[str, ...] = ()

    @staticmethod
    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def to_output(self, fields: Iterable[str] | None = None, exclude: Iterable[str] | None = None) -> dict[str, Any]:
        skip = set(exclude or ()) | set(self.private_fields)
        data: dict[str, Any] = {"id": str(self.id)}
        for field in fields or self._fields.keys():
            if field in skip or field == "id":
                continue
            data[field] = self._sanitize_value(getattr(self, field))
        return data

    def save(self, *args, **kwargs):
        self.updated_at = _utcnow()
        return super().save(*args, **kwargs)
