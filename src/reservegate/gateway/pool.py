"""
In-memory reserve pool and block clock.

The pool plays every collaborator role the gateway drives: it is the oracle
for reserve state, the sink for deposited base asset, and the wrapped token
ledger. It backs the standalone service and the test suite.
"""

from typing import Dict, Optional, Tuple

from reservegate.logging import get_logger
from reservegate.shared.conversion_models import ReserveState
from reservegate.shared.gateway_errors import (
    CapacityExceededError,
    DepositsDisabledError,
    InsufficientAuthorizationError,
    InsufficientBalanceError,
)

from .interfaces import BlockClock, DepositSink, ReserveOracle, Transactional, WrappedToken

logger = get_logger(__name__)


class InMemoryReservePool(ReserveOracle, DepositSink, WrappedToken, Transactional):
    """Reserve pool holding base asset against a wrapped token supply."""

    def __init__(
        self,
        initial_state: Optional[ReserveState] = None,
        enforce_limits: bool = True,
    ):
        self.state = initial_state.model_copy() if initial_state else ReserveState()
        self.enforce_limits = enforce_limits
        self.balances: Dict[str, int] = {}
        # Supply present at startup is held by no tracked account
        self.allowances: Dict[Tuple[str, str], int] = {}

    # Oracle

    def get_total_base_balance(self) -> int:
        return self.state.total_base_balance

    def get_total_wrapped_supply(self) -> int:
        return self.state.total_wrapped_supply

    def get_deposit_fee_rate(self) -> int:
        return self.state.deposit_fee_rate

    def is_deposit_enabled(self) -> bool:
        return self.state.deposits_enabled

    def get_max_deposit_amount(self) -> int:
        return self.state.max_deposit_amount

    def get_deposit_delay_blocks(self) -> int:
        return self.state.deposit_delay_blocks

    def get_state(self) -> ReserveState:
        """Copy of the full reserve state."""
        return self.state.model_copy()

    # Sink

    def deposit(self, account: str, amount: int) -> None:
        """Add deposited base asset to the reserve."""
        _require_positive(amount)
        if self.enforce_limits:
            if not self.state.deposits_enabled:
                raise DepositsDisabledError(account)
            if amount > self.state.max_deposit_amount:
                raise CapacityExceededError(amount, self.state.max_deposit_amount, account)

        self.state.total_base_balance += amount
        logger.debug(f"Reserve received {amount} from {account}")

    def release(self, recipient: str, amount: int) -> None:
        """Pay base asset out of the reserve."""
        if amount < 0:
            raise ValueError(f"Release amount must be non-negative, got {amount}")
        if amount > self.state.total_base_balance:
            raise ValueError(
                f"Cannot release {amount}: reserve holds {self.state.total_base_balance}"
            )

        self.state.total_base_balance -= amount
        logger.debug(f"Reserve released {amount} to {recipient}")

    # Wrapped token

    def credit_to(self, account: str, amount: int) -> None:
        """Mint wrapped tokens."""
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative, got {amount}")
        self.balances[account] = self.balances.get(account, 0) + amount
        self.state.total_wrapped_supply += amount

    def debit_from(self, account: str, amount: int, spender: str) -> None:
        """Burn wrapped tokens, spending the allowance unless the owner burns directly."""
        _require_positive(amount)

        if spender != account:
            allowed = self.allowance(account, spender)
            if allowed < amount:
                raise InsufficientAuthorizationError(account, spender, allowed, amount)

        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalanceError(account, balance, amount)

        if spender != account:
            self.allowances[(account, spender)] = self.allowance(account, spender) - amount
        self.balances[account] = balance - amount
        self.state.total_wrapped_supply -= amount

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Authorize ``spender`` to burn up to ``amount`` of ``owner``'s tokens."""
        if amount < 0:
            raise ValueError(f"Allowance must be non-negative, got {amount}")
        self.allowances[(owner, spender)] = amount

    # Settings

    def update_settings(
        self,
        deposit_fee_rate: Optional[int] = None,
        deposits_enabled: Optional[bool] = None,
        max_deposit_amount: Optional[int] = None,
        deposit_delay_blocks: Optional[int] = None,
    ) -> ReserveState:
        """Apply protocol setting changes coming from the settings source."""
        updates = {
            "deposit_fee_rate": deposit_fee_rate,
            "deposits_enabled": deposits_enabled,
            "max_deposit_amount": max_deposit_amount,
            "deposit_delay_blocks": deposit_delay_blocks,
        }
        changes = {k: v for k, v in updates.items() if v is not None}
        self.state = ReserveState(**{**self.state.model_dump(), **changes})
        if changes:
            logger.info("Reserve settings updated", **changes)
        return self.get_state()

    # Rollback

    def snapshot(self):
        return (
            self.state.model_copy(),
            dict(self.balances),
            dict(self.allowances),
        )

    def restore(self, snapshot) -> None:
        state, balances, allowances = snapshot
        self.state = state
        self.balances = balances
        self.allowances = allowances


class ManualBlockClock(BlockClock):
    """Block height advanced explicitly, e.g. from chain block events."""

    def __init__(self, start_block: int = 0):
        if start_block < 0:
            raise ValueError("Block height cannot be negative")
        self._block = start_block

    def current_block(self) -> int:
        return self._block

    def advance_to(self, block: int) -> int:
        """Move to ``block``; the height never goes backwards."""
        if block < self._block:
            raise ValueError(f"Block height cannot go backwards ({block} < {self._block})")
        self._block = block
        return self._block

    def mine(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("Cannot mine a negative number of blocks")
        self._block += blocks
        return self._block


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
