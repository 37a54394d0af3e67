"""Prometheus metrics exporters."""
from prometheus_client import Counter, CollectorRegistry, generate_latest

# Create registry
registry = CollectorRegistry()

# ========== POSITION METRICS ==========
positions_opened = Counter(
    'positions_opened_total',
    'Total number of positions opened',
    registry=registry
)

buys_recorded = Counter(
    'buys_recorded_total',
    'Total number of consecutive buys recorded',
    registry=registry
)

sells_recorded = Counter(
    'sells_recorded_total',
    'Total number of partial sells recorded',
    ['time_of_day'],
    registry=registry
)

positions_completed = Counter(
    'positions_completed_total',
    'Total number of positions fully sold',
    ['outcome'],
    registry=registry
)

operations_rejected = Counter(
    'ledger_operations_rejected_total',
    'Ledger operations rejected by validation',
    ['operation', 'reason'],
    registry=registry
)

# ========== REFLECTION METRICS ==========
reflections_created = Counter(
    'reflections_created_total',
    'Total number of post-trade reflections',
    registry=registry
)

# ========== COACH METRICS ==========
coach_requests = Counter(
    'coach_requests_total',
    'Coach endpoint requests',
    ['endpoint', 'status'],
    registry=registry
)

# ========== HELPER FUNCTIONS ==========
def record_position_opened():
    """Record a new position opening."""
    positions_opened.inc()

def record_buy():
    """Record a consecutive buy."""
    buys_recorded.inc()

def record_sell(time_of_day: str):
    """Record a partial sell."""
    sells_recorded.labels(time_of_day=time_of_day).inc()

def record_position_completed(outcome: str):
    """Record a position closing as 'win' or 'loss'."""
    positions_completed.labels(outcome=outcome).inc()

def record_rejection(operation: str, reason: str):
    """Record a rejected ledger operation."""
    operations_rejected.labels(operation=operation, reason=reason).inc()

def record_reflection():
    """Record a new reflection."""
    reflections_created.inc()

def record_coach_request(endpoint: str, status: str):
    """Record a coach call outcome ('ok', 'error', 'rate_limited')."""
    coach_requests.labels(endpoint=endpoint, status=status).inc()

def render_latest() -> bytes:
    """Prometheus text exposition of the journal registry."""
    return generate_latest(registry)
