"""
Prometheus metrics for the Reserve Gateway.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

from reservegate.shared.conversion_models import ReserveState

# Service info
service_info = Info(
    'reservegate_info',
    'Reserve Gateway service information'
)

# Reserve metrics
reserve_base_balance = Gauge(
    'reservegate_reserve_base_balance',
    'Base asset held by the reserve (smallest unit)'
)

reserve_wrapped_supply = Gauge(
    'reservegate_reserve_wrapped_supply',
    'Outstanding wrapped token supply (smallest unit)'
)

reserve_exchange_rate = Gauge(
    'reservegate_reserve_exchange_rate',
    'Base asset per wrapped token'
)

deposits_enabled = Gauge(
    'reservegate_deposits_enabled',
    'Whether deposits are accepted (1/0)'
)

current_block = Gauge(
    'reservegate_current_block',
    'Latest block height seen by the gateway'
)

# Operation counters
deposits_total = Counter(
    'reservegate_deposits_total',
    'Total committed deposits'
)

redemptions_total = Counter(
    'reservegate_redemptions_total',
    'Total committed redemptions'
)

fees_collected_total = Counter(
    'reservegate_fees_collected_total',
    'Deposit fees charged, in base asset'
)

rejections_total = Counter(
    'reservegate_rejections_total',
    'Rejected conversions',
    ['operation', 'error']  # deposit/redemption, error class
)

# Performance metrics
operation_duration = Histogram(
    'reservegate_operation_seconds',
    'Time to execute a gateway operation',
    ['operation'],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25)
)

# Message processing
messages_processed_total = Counter(
    'reservegate_messages_processed_total',
    'Total Kafka messages processed',
    ['topic', 'status']  # success, rejected, error
)


class MetricsCollector:
    """Helper class for updating gateway metrics."""

    def __init__(self, version: str = "1.0.0"):
        service_info.info({'version': version, 'service': 'reserve-gateway'})

    def update_reserve(self, state: ReserveState):
        reserve_base_balance.set(state.total_base_balance)
        reserve_wrapped_supply.set(state.total_wrapped_supply)
        reserve_exchange_rate.set(state.exchange_rate)
        deposits_enabled.set(1 if state.deposits_enabled else 0)

    def update_block(self, block_number: int):
        current_block.set(block_number)

    def record_deposit(self, fee_amount: int):
        deposits_total.inc()
        if fee_amount > 0:
            fees_collected_total.inc(fee_amount)

    def record_redemption(self):
        redemptions_total.inc()

    def record_rejection(self, operation: str, error: Exception):
        rejections_total.labels(operation=operation, error=type(error).__name__).inc()

    def time_operation(self, operation: str):
        """Context manager timing one gateway operation."""
        return operation_duration.labels(operation=operation).time()

    def record_message(self, topic: str, status: str):
        messages_processed_total.labels(topic=topic, status=status).inc()
