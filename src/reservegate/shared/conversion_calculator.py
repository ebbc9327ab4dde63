"""
Reserve conversion math: bonding-curve pricing between base asset and wrapped token.
"""

from reservegate.shared.conversion_models import (
    RATE_PRECISION,
    ConversionQuote,
    ReserveState,
)
from reservegate.shared.gateway_errors import (
    EmptyReserveError,
    InsufficientReserveSupplyError,
)


class ConversionCalculator:
    """Pure pricing functions. All amounts are integers in the asset's smallest unit."""

    @classmethod
    def calculate_fee(cls, base_amount: int, fee_rate: int) -> int:
        """Deposit fee, floored, for a fee rate expressed over 1e18."""
        _require_non_negative(base_amount=base_amount, fee_rate=fee_rate)
        return base_amount * fee_rate // RATE_PRECISION

    @classmethod
    def base_to_wrapped(
        cls,
        base_amount: int,
        total_base_balance: int,
        total_wrapped_supply: int,
        fee_rate: int,
    ) -> ConversionQuote:
        """Wrapped tokens issued for a deposit of ``base_amount``.

        An empty pool issues 1:1 against the raw input. The fee is still
        reported in that case but is not deducted from the output.
        """
        _require_non_negative(
            total_base_balance=total_base_balance,
            total_wrapped_supply=total_wrapped_supply,
        )
        fee = cls.calculate_fee(base_amount, fee_rate)

        if total_wrapped_supply == 0:
            return ConversionQuote(output_amount=base_amount, fee_amount=fee)

        if total_base_balance == 0:
            raise EmptyReserveError(total_wrapped_supply)

        # wrapped = net * R / E
        wrapped = (base_amount - fee) * total_wrapped_supply // total_base_balance
        return ConversionQuote(output_amount=wrapped, fee_amount=fee)

    @classmethod
    def wrapped_to_base(
        cls,
        wrapped_amount: int,
        total_base_balance: int,
        total_wrapped_supply: int,
    ) -> int:
        """Pro-rata share of the reserve owed for ``wrapped_amount``. No fee on redemption."""
        _require_non_negative(
            wrapped_amount=wrapped_amount,
            total_base_balance=total_base_balance,
            total_wrapped_supply=total_wrapped_supply,
        )
        if total_wrapped_supply == 0:
            raise InsufficientReserveSupplyError()

        return wrapped_amount * total_base_balance // total_wrapped_supply

    @classmethod
    def quote_deposit(cls, base_amount: int, state: ReserveState) -> ConversionQuote:
        """Price a deposit against a reserve snapshot."""
        return cls.base_to_wrapped(
            base_amount,
            state.total_base_balance,
            state.total_wrapped_supply,
            state.deposit_fee_rate,
        )

    @classmethod
    def quote_redemption(cls, wrapped_amount: int, state: ReserveState) -> int:
        """Price a redemption against a reserve snapshot."""
        return cls.wrapped_to_base(
            wrapped_amount,
            state.total_base_balance,
            state.total_wrapped_supply,
        )

    @classmethod
    def blocks_until_redeemable(
        cls,
        last_deposit_block: int,
        current_block: int,
        delay_blocks: int,
    ) -> int:
        """Blocks left before the cooldown clears; 0 once redemption is allowed."""
        return max(0, last_deposit_block + delay_blocks - current_block)

    @classmethod
    def is_cooldown_elapsed(
        cls,
        last_deposit_block: int,
        current_block: int,
        delay_blocks: int,
    ) -> bool:
        """Check ``current - last >= delay``.

        Accounts that never deposited carry a last block of 0 and are
        evaluated with the same formula.
        """
        return current_block - last_deposit_block >= delay_blocks


def _require_non_negative(**amounts: int) -> None:
    for name, value in amounts.items():
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")
