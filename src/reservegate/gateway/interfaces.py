"""
Collaborator interfaces consumed by the reserve gateway.
"""

from abc import ABC, abstractmethod
from typing import Any


class ReserveOracle(ABC):
    """Read-only view of the reserve pool and its protocol settings."""

    @abstractmethod
    def get_total_base_balance(self) -> int:
        pass

    @abstractmethod
    def get_total_wrapped_supply(self) -> int:
        pass

    @abstractmethod
    def get_deposit_fee_rate(self) -> int:
        """Fee rate as a fraction of 1e18."""
        pass

    @abstractmethod
    def is_deposit_enabled(self) -> bool:
        pass

    @abstractmethod
    def get_max_deposit_amount(self) -> int:
        pass

    @abstractmethod
    def get_deposit_delay_blocks(self) -> int:
        pass


class DepositSink(ABC):
    """Where deposited base asset goes and where redeemed base asset comes from."""

    @abstractmethod
    def deposit(self, account: str, amount: int) -> None:
        """Accept ``amount`` of base asset transferred by ``account``."""
        pass

    @abstractmethod
    def release(self, recipient: str, amount: int) -> None:
        """Pay ``amount`` of base asset out to ``recipient``."""
        pass


class WrappedToken(ABC):
    """Issuance and balance bookkeeping of the wrapped token."""

    @abstractmethod
    def credit_to(self, account: str, amount: int) -> None:
        """Mint ``amount`` to ``account``."""
        pass

    @abstractmethod
    def debit_from(self, account: str, amount: int, spender: str) -> None:
        """Burn ``amount`` from ``account`` on behalf of ``spender``.

        Raises:
            InsufficientAuthorizationError: allowance below ``amount``
            InsufficientBalanceError: balance below ``amount``
        """
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        pass


class BlockClock(ABC):
    """Source of the host chain's current block height."""

    @abstractmethod
    def current_block(self) -> int:
        pass


class Transactional(ABC):
    """Collaborator whose state can be captured and rolled back."""

    @abstractmethod
    def snapshot(self) -> Any:
        pass

    @abstractmethod
    def restore(self, snapshot: Any) -> None:
        pass
