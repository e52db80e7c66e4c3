from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "postgresql+psycopg://app:app@db:5432/app"

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "ops-portal-api"
    jwt_audience: str = "ops-portal-api"
    jwt_expires_minutes: int = 60

    # comma separated, always granted super-admin regardless of role
    super_admin_emails: str = ""

    @property
    def super_admins(self) -> frozenset[str]:
        return frozenset(
            e.strip().lower() for e in self.super_admin_emails.split(",") if e.strip()
        )

settings = Settings()
