"""
Deposit record storage: last deposit block per account.
"""

from abc import ABC, abstractmethod
from typing import Dict

import redis

from reservegate.config import StorageType
from reservegate.logging import get_logger

logger = get_logger(__name__)


class DepositRecordStore(ABC):
    """Abstract base class for the per-account deposit record.

    Entries are created on first deposit, never deleted, and never move
    backwards in block number.
    """

    @abstractmethod
    def get_last_deposit_block(self, account: str) -> int:
        """Last deposit block for ``account``; 0 if it never deposited."""
        pass

    @abstractmethod
    def has_deposited(self, account: str) -> bool:
        pass

    @abstractmethod
    def record_deposit(self, account: str, block_number: int) -> None:
        """Set the account's last deposit block.

        Raises:
            ValueError: if ``block_number`` is below the stored block
        """
        pass

    @abstractmethod
    def all_records(self) -> Dict[str, int]:
        pass

    @staticmethod
    def _check_monotonic(account: str, previous: int, block_number: int) -> None:
        if block_number < 0:
            raise ValueError(f"Block number must be non-negative, got {block_number}")
        if block_number < previous:
            raise ValueError(
                f"Deposit block for {account} cannot decrease ({block_number} < {previous})"
            )


class InMemoryDepositRecordStore(DepositRecordStore):
    """Dict-backed deposit record."""

    def __init__(self):
        self._records: Dict[str, int] = {}

    def get_last_deposit_block(self, account: str) -> int:
        return self._records.get(account, 0)

    def has_deposited(self, account: str) -> bool:
        return account in self._records

    def record_deposit(self, account: str, block_number: int) -> None:
        self._check_monotonic(account, self._records.get(account, 0), block_number)
        self._records[account] = block_number

    def all_records(self) -> Dict[str, int]:
        return dict(self._records)


class RedisDepositRecordStore(DepositRecordStore):
    """Redis hash-backed deposit record."""

    def __init__(self, redis_url: str = "redis://localhost:6379"):
        self.redis_client = redis.from_url(redis_url, decode_responses=True)
        self.records_key = "reservegate:deposit_records"

    def get_last_deposit_block(self, account: str) -> int:
        value = self.redis_client.hget(self.records_key, account)
        return int(value) if value is not None else 0

    def has_deposited(self, account: str) -> bool:
        return bool(self.redis_client.hexists(self.records_key, account))

    def record_deposit(self, account: str, block_number: int) -> None:
        previous = self.get_last_deposit_block(account)
        self._check_monotonic(account, previous, block_number)
        try:
            self.redis_client.hset(self.records_key, account, block_number)
        except redis.RedisError as e:
            logger.error(f"Failed to save deposit record to Redis: {e}")
            raise

        logger.debug(f"Saved deposit record to Redis: {account}@{block_number}")

    def all_records(self) -> Dict[str, int]:
        raw = self.redis_client.hgetall(self.records_key)
        return {account: int(block) for account, block in raw.items()}

    def ping(self) -> bool:
        return bool(self.redis_client.ping())


def create_storage(storage_type: str, connection_url: str = "") -> DepositRecordStore:
    """Factory function to create appropriate storage backend."""
    kind = storage_type.value if isinstance(storage_type, StorageType) else storage_type.lower()
    if kind == StorageType.MEMORY.value:
        return InMemoryDepositRecordStore()
    elif kind == StorageType.REDIS.value:
        return RedisDepositRecordStore(connection_url)
    else:
        raise ValueError(f"Unsupported storage type: {storage_type}")
