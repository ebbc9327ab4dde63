"""Reserve Gateway module for converting between base asset and wrapped token."""

from .models import AccountStatus, DepositReceipt, RedemptionReceipt, GatewayAvailability
from .interfaces import BlockClock, DepositSink, ReserveOracle, WrappedToken
from .pool import InMemoryReservePool, ManualBlockClock
from .storage import DepositRecordStore, InMemoryDepositRecordStore, RedisDepositRecordStore
from .gateway import ReserveGateway

__all__ = [
    "AccountStatus",
    "DepositReceipt",
    "RedemptionReceipt",
    "GatewayAvailability",
    "BlockClock",
    "DepositSink",
    "ReserveOracle",
    "WrappedToken",
    "InMemoryReservePool",
    "ManualBlockClock",
    "DepositRecordStore",
    "InMemoryDepositRecordStore",
    "RedisDepositRecordStore",
    "ReserveGateway",
]
