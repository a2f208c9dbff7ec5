import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()

class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # db creds
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "learnsync")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DATABASE_URL_OVERRIDE = os.getenv("DATABASE_URL")

    # Provider gateway (middleware that normalizes LMS providers)
    PROVIDER_SERVICE_URL = os.getenv("PROVIDER_SERVICE_URL", "http://localhost:8081")
    PROVIDER_SERVICE_API_PREFIX = os.getenv("PROVIDER_SERVICE_API_PREFIX", "/api")
    PROVIDER_SERVICE_KEY = os.getenv("PROVIDER_SERVICE_KEY", "")
    PROVIDER_REQUEST_TIMEOUT = float(os.getenv("PROVIDER_REQUEST_TIMEOUT", "10"))

    # Imported users without an email get <username>@<domain>
    PLACEHOLDER_EMAIL_DOMAIN = os.getenv("PLACEHOLDER_EMAIL_DOMAIN", "unlocked.v2")

    LOG_DIR = os.getenv("LOG_DIR", "logs")

    def _build_database_url(self):
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        base_url = f"postgresql+asyncpg://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        if self.ENVIRONMENT == "development":
            return base_url
        return f"{base_url}?ssl=require"

    @property
    def DATABASE_URL(self):
        return self._build_database_url()

    @property
    def IS_DEVELOPMENT(self) -> bool:
        return self.ENVIRONMENT == "development"

settings = Settings()
