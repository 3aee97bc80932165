import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hostel_food_review"),
}

DEBUG = False
TESTING = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
APP_URL = os.getenv("APP_URL", "")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TURNSTILE_SECRET_KEY = os.getenv("TURNSTILE_SECRET_KEY")
REDIS_URL = os.getenv("REDIS_URL")
RATELIMIT_ENABLED = True

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
SMTP_SECURE = os.getenv("SMTP_SECURE", "false").lower() == "true"
SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "Hostel Food Review")
SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")

ALLOWED_EMAIL_DOMAIN = os.getenv("ALLOWED_EMAIL_DOMAIN", "kanchiuniv.ac.in")
SUPER_ADMIN_REGISTER_ID = os.getenv("SUPER_ADMIN_REGISTER_ID", "SUPERADMIN")
SUPER_ADMIN_PASSWORD = os.getenv("SUPER_ADMIN_PASSWORD", "please-set-SUPER_ADMIN_PASSWORD")
