from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "volunteer"
    DB_PASSWORD: str = "volunteer_password"
    DB_NAME: str = "volunteer_db"
    SQL_ECHO: bool = False

    # Redis (optional - for production)
    REDIS_URL: Optional[str] = None  # e.g., "redis://localhost:6379/0"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 600
    CACHE_NAMESPACE: str = "volunteers"

    # Queries
    DEFAULT_NEARBY_RADIUS_KM: float = 50.0
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # URLs
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:4200"]

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file

settings = Settings()
