"""
Gateway error taxonomy.

Every error aborts the current operation; nothing is retried locally.
"""

from datetime import datetime
from typing import Optional


class GatewayError(Exception):
    """Base exception for reserve gateway errors."""

    def __init__(self, message: str, account: Optional[str] = None):
        self.account = account
        self.timestamp = datetime.utcnow()
        super().__init__(message)


class ZeroAmountError(GatewayError):
    """Raised when a deposit or redemption is requested for zero."""

    def __init__(self, operation: str, account: Optional[str] = None):
        self.operation = operation
        super().__init__(f"{operation} amount must be greater than zero", account)


class DepositsDisabledError(GatewayError):
    """Raised when a deposit is attempted while the reserve is closed to deposits."""

    def __init__(self, account: Optional[str] = None):
        super().__init__("Deposits are currently disabled", account)


class CapacityExceededError(GatewayError):
    """Raised when a deposit is larger than the configured maximum."""

    def __init__(self, amount: int, max_amount: int, account: Optional[str] = None):
        self.amount = amount
        self.max_amount = max_amount
        super().__init__(
            f"Deposit of {amount} exceeds maximum deposit amount {max_amount}",
            account,
        )


class CooldownActiveError(GatewayError):
    """Raised when a redemption is attempted too soon after the account's last deposit."""

    def __init__(
        self,
        account: str,
        last_deposit_block: int,
        current_block: int,
        delay_blocks: int,
    ):
        self.last_deposit_block = last_deposit_block
        self.current_block = current_block
        self.delay_blocks = delay_blocks
        self.redeemable_block = last_deposit_block + delay_blocks
        super().__init__(
            f"Redemption locked until block {self.redeemable_block} "
            f"(Last deposit: {last_deposit_block}, Current: {current_block}, "
            f"Delay: {delay_blocks})",
            account,
        )


class InsufficientReserveSupplyError(GatewayError, ZeroDivisionError):
    """Raised when pricing a redemption against a pool with no wrapped supply."""

    def __init__(self, account: Optional[str] = None):
        super().__init__("No wrapped supply outstanding; redemption is impossible", account)


class EmptyReserveError(GatewayError, ZeroDivisionError):
    """Raised when wrapped supply exists but the reserve holds no base asset."""

    def __init__(self, total_wrapped_supply: int, account: Optional[str] = None):
        self.total_wrapped_supply = total_wrapped_supply
        super().__init__(
            f"Reserve base balance is zero with {total_wrapped_supply} wrapped outstanding",
            account,
        )


class InsufficientBalanceError(GatewayError):
    """Raised by the wrapped token when an account holds less than requested."""

    def __init__(self, account: str, balance: int, requested: int):
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient wrapped balance (Balance: {balance}, Requested: {requested})",
            account,
        )


class InsufficientAuthorizationError(GatewayError):
    """Raised by the wrapped token when the spender's allowance is too small."""

    def __init__(self, account: str, spender: str, allowance: int, requested: int):
        self.spender = spender
        self.allowance = allowance
        self.requested = requested
        super().__init__(
            f"Insufficient allowance for {spender} "
            f"(Allowance: {allowance}, Requested: {requested})",
            account,
        )
