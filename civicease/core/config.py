# civicease/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "civicease")
    FIREBASE_WEB_API_KEY: str = os.getenv("FIREBASE_WEB_API_KEY", "")
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )
    FIREBASE_SERVICE_ACCOUNT_JSON: str = os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON", "")

    # One-time bootstrap key for POST /auth/create-admin
    ADMIN_SECRET_KEY: str = os.getenv("ADMIN_SECRET_KEY", "CIVICEASE_ADMIN_2025")

    # Mount point for every router, e.g. "/make-server" behind a gateway
    API_PREFIX: str = os.getenv("API_PREFIX", "")
    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    # Pending-complaint watcher
    ENABLE_COMPLAINT_WATCH: bool = os.getenv("ENABLE_COMPLAINT_WATCH", "false").lower() == "true"
    COMPLAINT_WATCH_INTERVAL_SECONDS: int = int(
        os.getenv("COMPLAINT_WATCH_INTERVAL_SECONDS", "10")
    )

    # Department defaults
    DEFAULT_CUSTOMER_CARE_PHONE: str = os.getenv("DEFAULT_CUSTOMER_CARE_PHONE", "1800-XXX-XXXX")
    CUSTOMER_CARE_EMAIL_DOMAIN: str = os.getenv("CUSTOMER_CARE_EMAIL_DOMAIN", "civicease.gov")


settings = Settings()
