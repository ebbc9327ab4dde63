"""Shared pytest fixtures and configuration."""

import pytest

from reservegate.gateway.gateway import ReserveGateway
from reservegate.gateway.pool import InMemoryReservePool, ManualBlockClock
from reservegate.gateway.storage import InMemoryDepositRecordStore
from reservegate.shared.conversion_models import ReserveState

GATEWAY_ADDRESS = "reserve-gateway"
FIVE_PERCENT = 5 * 10**16


@pytest.fixture
def reserve_state() -> ReserveState:
    """Seeded pool: 1000 base backing 900 wrapped, 5% fee, 10 block delay."""
    return ReserveState(
        total_base_balance=1000,
        total_wrapped_supply=900,
        deposit_fee_rate=FIVE_PERCENT,
        deposits_enabled=True,
        max_deposit_amount=10_000,
        deposit_delay_blocks=10,
    )


@pytest.fixture
def pool(reserve_state) -> InMemoryReservePool:
    return InMemoryReservePool(reserve_state)


@pytest.fixture
def clock() -> ManualBlockClock:
    return ManualBlockClock(start_block=100)


@pytest.fixture
def records() -> InMemoryDepositRecordStore:
    return InMemoryDepositRecordStore()


@pytest.fixture
def gateway(pool, clock, records) -> ReserveGateway:
    return ReserveGateway(
        oracle=pool,
        sink=pool,
        token=pool,
        clock=clock,
        records=records,
        gateway_address=GATEWAY_ADDRESS,
    )
