import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "startupvault")

    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    SESSION_TTL_DAYS: int = int(os.getenv("SESSION_TTL_DAYS", "7"))
    VERIFICATION_TTL_HOURS: int = int(os.getenv("VERIFICATION_TTL_HOURS", "24"))

    # CORS origin for the web client
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # No mailer yet: register hands the verification token back to the client
    EXPOSE_VERIFICATION_TOKEN: bool = os.getenv("EXPOSE_VERIFICATION_TOKEN", "true").lower() == "true"

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PORT: int = int(os.getenv("PORT", "8000"))


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
