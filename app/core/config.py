from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import os

load_dotenv()

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./profetch.db")
    DB_CONNECT_RETRIES: int = int(os.getenv("DB_CONNECT_RETRIES", "5"))
    DB_RETRY_BACKOFF_SECONDS: float = float(os.getenv("DB_RETRY_BACKOFF_SECONDS", "2"))

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-this-secret-key")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    TOKEN_ISSUER: str = os.getenv("TOKEN_ISSUER", "profetch")
    RESET_CODE_EXPIRE_MINUTES: int = int(os.getenv("RESET_CODE_EXPIRE_MINUTES", "60"))

    # App
    APP_NAME: str = os.getenv("APP_NAME", "ProFetch API")
    DEBUG: bool = os.getenv("DEBUG", "True") == "True"
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")  # comma-separated
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Media store ("local" or "cloudinary")
    MEDIA_BACKEND: str = os.getenv("MEDIA_BACKEND", "local")
    MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "media")
    MEDIA_FOLDER: str = os.getenv("MEDIA_FOLDER", "profetch")
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))
    CLOUDINARY_CLOUD_NAME: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY: str = os.getenv("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET: str = os.getenv("CLOUDINARY_API_SECRET", "")

    # Email (SMTP)
    EMAIL_HOST: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    EMAIL_PORT: int = int(os.getenv("EMAIL_PORT", "587"))
    EMAIL_USER: str = os.getenv("EMAIL_USER", "")
    EMAIL_PASSWORD: str = os.getenv("EMAIL_PASSWORD", "")
    EMAIL_USE_SSL: bool = os.getenv("EMAIL_USE_SSL", "False") == "True"
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "ProFetch")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: str = os.getenv("LOG_FILE", "")

settings = Settings()
