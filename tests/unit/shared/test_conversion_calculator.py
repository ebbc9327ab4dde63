"""
Unit tests for the conversion calculator.
"""

import pytest

from reservegate.shared.conversion_calculator import ConversionCalculator
from reservegate.shared.conversion_models import RATE_PRECISION, ConversionQuote, ReserveState
from reservegate.shared.gateway_errors import (
    EmptyReserveError,
    GatewayError,
    InsufficientReserveSupplyError,
)

FIVE_PERCENT = 5 * 10**16


class TestFee:
    """Test deposit fee computation."""

    @pytest.mark.parametrize(
        "amount,rate,expected_fee",
        [
            (100, FIVE_PERCENT, 5),
            (50, FIVE_PERCENT, 2),  # 2.5 floors to 2
            (19, FIVE_PERCENT, 0),  # 0.95 floors to 0
            (0, FIVE_PERCENT, 0),
            (100, 0, 0),
            (100, RATE_PRECISION, 100),  # 100% fee
            (10**30, 3 * 10**15, 3 * 10**27),  # 0.3% on a large amount
        ],
    )
    def test_calculate_fee(self, amount, rate, expected_fee):
        assert ConversionCalculator.calculate_fee(amount, rate) == expected_fee

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            ConversionCalculator.calculate_fee(-1, FIVE_PERCENT)


class TestBaseToWrapped:
    """Test deposit pricing."""

    def test_reference_scenario(self):
        """1000 base / 900 wrapped at 5%: 100 base -> fee 5, 85 wrapped."""
        quote = ConversionCalculator.base_to_wrapped(100, 1000, 900, FIVE_PERCENT)

        assert quote.fee_amount == 5
        assert quote.output_amount == 85  # floor(95 * 900 / 1000)

    def test_bootstrap_returns_input_unscaled(self):
        """Empty pool issues 1:1 and reports, but does not deduct, the fee."""
        quote = ConversionCalculator.base_to_wrapped(50, 0, 0, FIVE_PERCENT)

        assert quote == ConversionQuote(output_amount=50, fee_amount=2)

    def test_bootstrap_ignores_stray_base_balance(self):
        """A pool with base but no supply still issues 1:1."""
        quote = ConversionCalculator.base_to_wrapped(50, 777, 0, FIVE_PERCENT)

        assert quote.output_amount == 50

    def test_zero_amount_quotes_zero(self):
        quote = ConversionCalculator.base_to_wrapped(0, 1000, 900, FIVE_PERCENT)

        assert quote == ConversionQuote(output_amount=0, fee_amount=0)

    def test_all_zero_inputs(self):
        quote = ConversionCalculator.base_to_wrapped(0, 0, 0, 0)

        assert quote == ConversionQuote(output_amount=0, fee_amount=0)

    def test_no_fee_at_parity(self):
        quote = ConversionCalculator.base_to_wrapped(100, 1000, 1000, 0)

        assert quote == ConversionQuote(output_amount=100, fee_amount=0)

    def test_rounds_down(self):
        # 10 * 2 / 3 = 6.67
        quote = ConversionCalculator.base_to_wrapped(10, 3, 2, 0)

        assert quote.output_amount == 6

    def test_empty_reserve_with_supply_raises(self):
        with pytest.raises(EmptyReserveError) as exc_info:
            ConversionCalculator.base_to_wrapped(100, 0, 900, FIVE_PERCENT)

        assert isinstance(exc_info.value, ZeroDivisionError)
        assert exc_info.value.total_wrapped_supply == 900

    def test_large_values_keep_precision(self):
        """Integer math does not lose precision at 18-decimal scale."""
        one = 10**18
        quote = ConversionCalculator.base_to_wrapped(
            3 * one, 1_000_000 * one + 7, 999_999 * one, 0
        )

        expected = 3 * one * (999_999 * one) // (1_000_000 * one + 7)
        assert quote.output_amount == expected


class TestWrappedToBase:
    """Test redemption pricing."""

    def test_pro_rata_share(self):
        assert ConversionCalculator.wrapped_to_base(85, 1000, 900) == 94  # floor(94.44)

    def test_full_supply_redeems_full_reserve(self):
        assert ConversionCalculator.wrapped_to_base(900, 1000, 900) == 1000

    def test_zero_wrapped(self):
        assert ConversionCalculator.wrapped_to_base(0, 1000, 900) == 0

    def test_zero_supply_raises(self):
        with pytest.raises(InsufficientReserveSupplyError) as exc_info:
            ConversionCalculator.wrapped_to_base(10, 1000, 0)

        assert isinstance(exc_info.value, ZeroDivisionError)
        assert isinstance(exc_info.value, GatewayError)

    def test_zero_supply_raises_even_for_zero_amount(self):
        with pytest.raises(InsufficientReserveSupplyError):
            ConversionCalculator.wrapped_to_base(0, 0, 0)


class TestSnapshotQuotes:
    """Test quoting against a ReserveState."""

    def test_quote_deposit(self):
        state = ReserveState(
            total_base_balance=1000,
            total_wrapped_supply=900,
            deposit_fee_rate=FIVE_PERCENT,
        )

        assert ConversionCalculator.quote_deposit(100, state) == ConversionQuote(output_amount=85, fee_amount=5)

    def test_quote_redemption(self):
        state = ReserveState(total_base_balance=1100, total_wrapped_supply=985)

        assert ConversionCalculator.quote_redemption(85, state) == 94


class TestCooldown:
    """Test cooldown arithmetic."""

    @pytest.mark.parametrize(
        "last,current,delay,elapsed",
        [
            (100, 100, 10, False),
            (100, 109, 10, False),
            (100, 110, 10, True),  # Exactly the delay
            (100, 500, 10, True),
            (100, 100, 0, True),  # No delay configured
            (0, 5, 10, False),  # Never deposited, chain younger than delay
            (0, 10, 10, True),
        ],
    )
    def test_is_cooldown_elapsed(self, last, current, delay, elapsed):
        assert ConversionCalculator.is_cooldown_elapsed(last, current, delay) is elapsed

    def test_blocks_until_redeemable(self):
        assert ConversionCalculator.blocks_until_redeemable(100, 104, 10) == 6
        assert ConversionCalculator.blocks_until_redeemable(100, 110, 10) == 0
        assert ConversionCalculator.blocks_until_redeemable(100, 200, 10) == 0


class TestReserveState:
    """Test reserve state helpers."""

    def test_exchange_rate(self):
        state = ReserveState(total_base_balance=1100, total_wrapped_supply=1000)

        assert state.exchange_rate == pytest.approx(1.1)
        assert not state.is_bootstrap

    def test_bootstrap_exchange_rate(self):
        state = ReserveState()

        assert state.is_bootstrap
        assert state.exchange_rate == 1.0

    def test_negative_balance_rejected(self):
        with pytest.raises(ValueError):
            ReserveState(total_base_balance=-1)
