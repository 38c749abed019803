# paint_pos/constants.py
from decimal import Decimal

APP_NAME = "Paint Store POS"
APP_SLUG = "PaintStorePOS"

DATA_DIR = "PaintStorePOS"
DB_FILE_NAME = "paintstore.db"
SETTINGS_FILE_NAME = "settings.json"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.0.0"

MONEY_QUANT = Decimal("0.01")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000
DEFAULT_LOW_STOCK_THRESHOLD = 10
RECENT_SALES_LIMIT = 10
MONTHLY_CHART_DAYS = 30

DEFAULT_RETURN_REASON = "Customer return"
UNKNOWN_CUSTOMER = "Unknown Customer"

OPEN_STATUSES = ("unpaid", "partial")

WINDOW_DEFAULT_SIZE = (1400, 900)
WINDOW_MIN_SIZE = (1024, 768)
