import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    BASE_DIR = Path(__file__).resolve().parent.parent
    DATA_DIR = Path(os.getenv("DATA_DIR") or BASE_DIR / "data")
    DATABASE_PATH = Path(os.getenv("DATABASE_PATH") or DATA_DIR / "site.json")

    SITE_NAME = os.getenv("SITE_NAME", "JAZEY Development")
    SITE_URL = os.getenv("SITE_URL", "http://localhost:3000")

    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL")
    DISCORD_GUILD_ID = os.getenv("DISCORD_GUILD_ID")

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    MAIL_FROM = os.getenv("MAIL_FROM")
    NOTIFY_EMAIL = os.getenv("NOTIFY_EMAIL")

    # Flask rejects request bodies above this size with 413
    MAX_CONTENT_LENGTH = 64 * 1024


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False
