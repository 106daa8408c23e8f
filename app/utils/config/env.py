from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "auth-service"
    environment: str = "local"
    debug: bool = True

    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"
    log_format: str | None = None

    mongo_url: str | None = None
    mongo_port: int = 27017
    mongo_host: str = "localhost"
    mongo_db: str = "auth_service"
    mongo_password: str | None = None
    mongo_params: str | None = None
    mongo_user: str | None = None
    mongo_tls: bool = False

    jwt_algorithm: str = "HS256"
    jwt_secret_key: str | None = None
    token_ttl_minutes: int = 60 * 24 * 7

    bcrypt_rounds: int = 12

    api_base_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 10.0
    session_file: str = ".auth_session.json"

    model_config = SettingsConfigDict(env_file=(".env",), case_sensitive=True)

    @property
    def mongo_uri(self) -> str:
        if self.mongo_url:
            return self.mongo_url
        auth = ""
        if self.mongo_user and self.mongo_password:
            auth = f"{self.mongo_user}:{self.mongo_password}@"
        params = f"?{self.mongo_params}" if self.mongo_params else ""
        return f"mongodb://{auth}{self.mongo_host}:{self.mongo_port}/{self.mongo_db}{params}"

    @property
    def is_local(self) -> bool:
        return self.environment in ("local", "development")


settings = Settings()
