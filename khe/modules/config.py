"""
Service Configuration

All settings come from the environment (optionally a local .env file).
"""
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost:5432/khe")

# "production" turns on registration mail
APP_ENV = os.getenv("APP_ENV", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "100000"))

# Mail
SYSTEM_EMAIL = os.getenv("SYSTEM_EMAIL", "noreply@khe.io")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD") or os.getenv("EMAIL_APP_PASSWORD")
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def is_production() -> bool:
    return APP_ENV.lower() == "production"
