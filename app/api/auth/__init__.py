from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.services.auth import AuthService, LoginResult, UserPublicView, get_auth_service


router = APIRouter()


# Fields are optional here so that missing values reach the service and come
# back as 400 "missing fields" rather than a schema error.
class RegisterBody(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


@router.post("/register", response_model=UserPublicView, status_code=201)
def register(body: RegisterBody, service: AuthService = Depends(get_auth_service)) -> UserPublicView:
    # Credential creation only; the client logs in separately
    return service.register(name=body.name, email=body.email, password=body.password)


class LoginBody(BaseModel):
    email: str | None = None
    password: str | None = None


@router.post("/login", response_model=LoginResult)
def login(body: LoginBody, service: AuthService = Depends(get_auth_service)) -> LoginResult:
    return service.login(email=body.email, password=body.password)
