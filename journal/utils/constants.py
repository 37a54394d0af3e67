"""
Application constants to replace magic numbers throughout the codebase.
"""

# Ledger
FULL_POSITION_PCT = 100.0
COMPLETION_EPSILON = 1e-9  # cumulative sold within this of 100% completes the position

# Decision quality / psychology scales
MIN_SCALE = 1
MAX_SCALE = 10

# Currency preferences
CURRENCIES = ('USD', 'SOL')
DEFAULT_CURRENCY = 'USD'

# Snapshot schema version written with every persisted payload
SNAPSHOT_VERSION = 0

# Analytics periods (months back from now; 'all' has no cutoff)
ANALYTICS_PERIODS = {
    '1m': 1,
    '3m': 3,
    '6m': 6,
    '1y': 12,
}

# Market cap buckets: label -> [lower, upper)
MARKET_CAP_BUCKETS = (
    ('<100K', 0.0, 100_000.0),
    ('100K-500K', 100_000.0, 500_000.0),
    ('500K-1M', 500_000.0, 1_000_000.0),
    ('>1M', 1_000_000.0, float('inf')),
)

HISTORY_SORTS = ('date-desc', 'date-asc', 'roi-desc', 'roi-asc', 'profit-desc')
HISTORY_OUTCOMES = ('all', 'wins', 'losses')

# Coach defaults
DEFAULT_CONFIDENCE = 75
EXIT_CONFIDENCE = 85
PATTERN_CONFIDENCE = 90
COACHING_CONFIDENCE = 88
MAX_TEXT_LENGTH = 5000

# Database query limits
DEFAULT_QUERY_LIMIT = 50
MAX_QUERY_LIMIT = 500
