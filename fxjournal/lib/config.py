"""Application configuration constants."""

# CSV report parsing
HEADER_SCAN_LINES = 10  # lines inspected when looking for the column header
HEADER_KEYWORDS = ("ticket", "deal", "time", "type", "symbol", "price")

# Duplicate detection
DUPLICATE_CHECK_BATCH_SIZE = 30  # max ticket ids per IN-list query

# Persistence
MAX_CONSECUTIVE_SAVE_FAILURES = 10  # Abort the import after this many failed writes in a row

# VIP showcase scope
DEFAULT_VIP_PROFILE_ID = "vip-showcase"
DEFAULT_VIP_USER_ID = "vip-trader"
VIP_CONFIG_DOCUMENT = "vip-showcase"  # key of the remote configuration document
LOCAL_PROFILE_KEY = "vip-showcase-profile"
LOCAL_USER_KEY = "vip-showcase-user"

# Trade conversion
TRADE_SOURCE_MT5_VIP = "MT5_VIP"
SYNC_METHOD_MANUAL = "manual"
PIPS_MULTIPLIER = 10000  # rough heuristic, not pair aware (JPY pairs are off by 100x)

# VIP statistics
VIP_STATS_SOURCES = ("MT5_VIP", "MANUAL", "manual", "csv", "CSV")
VIP_MIN_STARTING_BALANCE = 10000  # Estimated starting balance floor
