ABC_TIERS = ("A", "B", "C")
FALLBACK_TIER = "C"

TIER_A_MIN_SCORE = 0.75
TIER_B_MIN_SCORE = 0.45

# Composite score weights; revenue dominates, seasonality only breaks ties.
SCORE_WEIGHTS = {
    "revenue": 0.35,
    "volume": 0.25,
    "frequency": 0.20,
    "unit_price": 0.10,
    "average_order_value": 0.05,
    "seasonality": 0.05,
}

DEFAULT_ANALYSIS_WINDOW_DAYS = 90
DEFAULT_FORECAST_DAYS = 30

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

STOCK_UPDATED_EVENT = "StockUpdated"
LOW_STOCK_ALERT_EVENT = "LowStockAlert"

# Offered when no product has been stored yet.
DEFAULT_CATEGORIES = (
    "Electronics",
    "Clothing",
    "Books",
    "Home & Garden",
    "Sports",
    "Toys",
)

STOCK_STATUS_OUT = "Out of Stock"
STOCK_STATUS_LOW = "Low"
STOCK_STATUS_MEDIUM = "Medium"
STOCK_STATUS_HIGH = "High"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
