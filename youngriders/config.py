import os

# ----------------------------
# Config & Constants
# ----------------------------
DATA_DIR = os.environ.get("DATA_DIR", "data")
UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "uploads")

SESSION_SECRET = os.environ.get("SESSION_SECRET", "dev-secret-change-me")
ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "youngriders2025")

CREW_ACCESS_CODE = os.environ.get(
    "CREW_ACCESS_CODE", "2025-crew-youngridersoost-cfxo"
)

HOODIE_PRICE = float(os.environ.get("HOODIE_PRICE", "50"))  # EUR
SHIPPING_COST = float(os.environ.get("SHIPPING_COST", "3.5"))  # EUR per item

MAINTENANCE_BYPASS_COOKIE = "maintenance_bypass"
MAINTENANCE_BYPASS_MAX_AGE = int(
    os.environ.get("MAINTENANCE_BYPASS_MAX_AGE", str(60 * 60))
)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

SITE_NAME = "Young Riders Oost"

# hoodie colors offered in the shop: slug -> display name
HOODIE_COLORS = {
    "lilac": "Lilac",
    "ocean-blue": "Ocean Blue",
    "burgundy": "Burgundy",
    "black": "Zwart",
}
CREW_COLOR = "olive"
SIZES = ["s", "m", "l", "xl", "xxl", "xxxl"]
