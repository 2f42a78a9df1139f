from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Full SQLAlchemy URL; when unset the POSTGRES_* parts are used
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "stringing"
    POSTGRES_USER: str = "stringing"
    POSTGRES_PASSWORD: str = "stringing"

    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_API_URL: str = "https://api.stripe.com/v1/balance"

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    # Comma separated allow-list, checked when the token carries no admin role
    ADMIN_EMAILS: str = ""

    PICKUP_CODE_MAX_ATTEMPTS: int = 20
    REVIEW_URL: str = "https://g.page/r/stringing-shop/review"
    HEALTH_PROBE_TIMEOUT: float = 5.0

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}

@lru_cache
def get_settings() -> Settings:
    return Settings()
