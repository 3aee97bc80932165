"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Asia/Kolkata"

DEFAULT_SESSION_DAYS = 7

DEFAULT_MEAL_TIMINGS = {
    "breakfast": {"start": "07:00", "end": "10:00", "label": "Breakfast"},
    "lunch": {"start": "12:00", "end": "15:00", "label": "Lunch"},
    "snacks": {"start": "16:00", "end": "18:00", "label": "Snacks"},
    "dinner": {"start": "19:00", "end": "22:00", "label": "Dinner"},
}

MAX_REVIEW_TEXT = 2000
MAX_COMPLAINT_TEXT = 2000
MAX_COMPLAINT_REPLY = 1000
MAX_REVIEW_REPLY = 2000
MAX_MENU_ITEMS = 1000
MAX_MENU_TIMING = 100
MAX_SPECIAL_LABEL = 60
MAX_MEAL_LABEL = 50

# Check-in history
DEFAULT_HISTORY_DAYS = 7
MAX_HISTORY_DAYS = 30

DEFAULT_ANALYTICS_DAYS = 7
MAX_ANALYTICS_DAYS = 365
LOW_RATING_THRESHOLD = 2
ALERT_AVG_RATING = 2.5
ALERT_LOW_RATING_RATIO = 0.3
RECENT_REVIEWS_LIMIT = 20

DEFAULT_EXPORT_DAYS = 30

OTP_TTL_MINUTES = 5
REVIEW_DELETE_WINDOW_HOURS = 24
NEW_ACCOUNT_DAYS = 7

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_EXTENSIONS = (".xlsx",)

# Roster sheet code -> hostel block name
SHEET_TO_HOSTEL = {
    "VH": "Visalakshi Hostel",
    "AH": "Annapoorani Hostel",
    "MH": "Sri Meenakshi Hostel",
    "KH": "Sri Kamakshi Hostel",
    "SH": "Sri Saraswathi Hostel",
}

VALID_YEARS = ("1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year")

CHECKIN_PATH = "/student/checkin"
