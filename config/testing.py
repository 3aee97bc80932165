import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hostel_food_review_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

TIMEZONE = "Asia/Kolkata"
APP_URL = "http://hostel.test"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TURNSTILE_SECRET_KEY = None
REDIS_URL = None
RATELIMIT_ENABLED = False

SMTP_HOST = "localhost"
SMTP_PORT = 25
SMTP_USER = None
SMTP_PASS = None
SMTP_SECURE = False
SMTP_FROM_NAME = "Hostel Food Review"
SMTP_FROM_EMAIL = "no-reply@hostel.test"

ALLOWED_EMAIL_DOMAIN = "kanchiuniv.ac.in"
SUPER_ADMIN_REGISTER_ID = "SUPERADMIN"
SUPER_ADMIN_PASSWORD = "superadmin123"
