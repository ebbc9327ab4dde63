"""
Core Reserve Gateway implementation.
"""

import threading
from contextlib import contextmanager
from typing import Dict, List, Optional

from reservegate.logging import get_logger
from reservegate.shared.conversion_calculator import ConversionCalculator
from reservegate.shared.conversion_models import ConversionQuote, ReserveState
from reservegate.shared.gateway_errors import (
    CapacityExceededError,
    CooldownActiveError,
    DepositsDisabledError,
    GatewayError,
    ZeroAmountError,
)

from .interfaces import BlockClock, DepositSink, ReserveOracle, Transactional, WrappedToken
from .metrics import MetricsCollector
from .models import (
    AccountStatus,
    AccountView,
    ConversionReceipt,
    DepositReceipt,
    GatewayAvailability,
    RedemptionReceipt,
)
from .storage import DepositRecordStore, InMemoryDepositRecordStore

logger = get_logger(__name__)


class ReserveGateway:
    """Converts between base asset and wrapped token against the reserve.

    Reserve state is read from the oracle on every call and never cached.
    Mutating operations are serialized and either commit every effect or
    none of them.
    """

    def __init__(
        self,
        oracle: ReserveOracle,
        sink: DepositSink,
        token: WrappedToken,
        clock: BlockClock,
        records: Optional[DepositRecordStore] = None,
        gateway_address: str = "reserve-gateway",
        max_history: int = 1000,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.oracle = oracle
        self.sink = sink
        self.token = token
        self.clock = clock
        self.records = records if records is not None else InMemoryDepositRecordStore()
        self.gateway_address = gateway_address
        self.max_history = max_history
        self.metrics = metrics or MetricsCollector()

        self.conversion_history: List[ConversionReceipt] = []
        self.rejection_count = 0
        self._lock = threading.RLock()

    # Reads

    def read_reserve_state(self) -> ReserveState:
        """Fresh snapshot of reserve state from the oracle."""
        return ReserveState(
            total_base_balance=self.oracle.get_total_base_balance(),
            total_wrapped_supply=self.oracle.get_total_wrapped_supply(),
            deposit_fee_rate=self.oracle.get_deposit_fee_rate(),
            deposits_enabled=self.oracle.is_deposit_enabled(),
            max_deposit_amount=self.oracle.get_max_deposit_amount(),
            deposit_delay_blocks=self.oracle.get_deposit_delay_blocks(),
        )

    def quote_base_to_wrapped(self, base_amount: int) -> ConversionQuote:
        """Wrapped tokens and fee for depositing ``base_amount``."""
        return ConversionCalculator.quote_deposit(base_amount, self.read_reserve_state())

    def quote_wrapped_to_base(self, wrapped_amount: int) -> int:
        """Base asset released for redeeming ``wrapped_amount``."""
        return ConversionCalculator.quote_redemption(wrapped_amount, self.read_reserve_state())

    def get_availability(self) -> GatewayAvailability:
        return GatewayAvailability(
            deposits_enabled=self.oracle.is_deposit_enabled(),
            max_deposit_amount=self.oracle.get_max_deposit_amount(),
        )

    def get_deposit_delay(self) -> int:
        return self.oracle.get_deposit_delay_blocks()

    def get_last_deposit_block(self, account: str) -> int:
        return self.records.get_last_deposit_block(account)

    def get_redeemable_block(self, account: str) -> int:
        """First block at which ``account`` may redeem.

        Accounts without a deposit record count from block 0, as the
        cooldown check does.
        """
        return self.records.get_last_deposit_block(account) + self.get_deposit_delay()

    def get_account_status(self, account: str) -> AccountStatus:
        if not self.records.has_deposited(account):
            return AccountStatus.NEVER_DEPOSITED

        elapsed = ConversionCalculator.is_cooldown_elapsed(
            self.records.get_last_deposit_block(account),
            self.clock.current_block(),
            self.get_deposit_delay(),
        )
        return AccountStatus.REDEEMABLE if elapsed else AccountStatus.COOLING_DOWN

    def get_account_view(self, account: str) -> AccountView:
        last_block = self.get_last_deposit_block(account)
        current_block = self.clock.current_block()
        blocks_left = ConversionCalculator.blocks_until_redeemable(
            last_block, current_block, self.get_deposit_delay()
        )
        return AccountView(
            account=account,
            last_deposit_block=last_block,
            redeemable_block=self.get_redeemable_block(account),
            current_block=current_block,
            blocks_until_redeemable=blocks_left,
            can_redeem=blocks_left == 0,
            status=self.get_account_status(account),
        )

    # Mutations

    def deposit_base_for_wrapped(self, account: str, amount: int) -> DepositReceipt:
        """Deposit ``amount`` of base asset and credit wrapped tokens to ``account``.

        ``amount`` stands for the value transferred with the call; the
        transfer itself is performed by the deposit sink.

        Raises:
            ZeroAmountError: amount is 0, whatever the pool state
            DepositsDisabledError: deposits are switched off
            CapacityExceededError: amount above the maximum deposit (inclusive ceiling)
        """
        with self._lock, self.metrics.time_operation("deposit"):
            try:
                self._validate_deposit(account, amount)
                block = self.clock.current_block()

                with self._atomic():
                    quote = self.quote_base_to_wrapped(amount)
                    self.sink.deposit(account, amount)
                    self.token.credit_to(account, quote.output_amount)
                    # Written last so a failed collaborator call leaves no record
                    self.records.record_deposit(account, block)

            except GatewayError as e:
                self._reject("deposit", account, e)
                raise

            receipt = DepositReceipt(
                account=account,
                block_number=block,
                base_amount=amount,
                wrapped_amount=quote.output_amount,
                fee_amount=quote.fee_amount,
            )
            self._commit(receipt)
            self.metrics.record_deposit(quote.fee_amount)

            logger.info(
                f"Deposit: {amount} base -> {quote.output_amount} wrapped "
                f"(fee {quote.fee_amount}) for {account} at block {block}"
            )
            return receipt

    def redeem_wrapped_for_base(self, account: str, wrapped_amount: int) -> RedemptionReceipt:
        """Burn ``wrapped_amount`` from ``account`` and release its share of the reserve.

        Raises:
            ZeroAmountError: wrapped_amount is 0
            CooldownActiveError: delay since the last deposit has not elapsed
            InsufficientReserveSupplyError: no wrapped supply outstanding
            InsufficientAuthorizationError, InsufficientBalanceError: from the token
        """
        with self._lock, self.metrics.time_operation("redemption"):
            try:
                if wrapped_amount < 0:
                    raise ValueError(f"Redemption amount must be non-negative, got {wrapped_amount}")
                if wrapped_amount == 0:
                    raise ZeroAmountError("Redemption", account)

                block = self.clock.current_block()
                self._check_cooldown(account, block)

                with self._atomic():
                    base_amount = self.quote_wrapped_to_base(wrapped_amount)
                    self.token.debit_from(account, wrapped_amount, self.gateway_address)
                    self.sink.release(account, base_amount)

            except GatewayError as e:
                self._reject("redemption", account, e)
                raise

            receipt = RedemptionReceipt(
                account=account,
                block_number=block,
                wrapped_amount=wrapped_amount,
                base_amount=base_amount,
            )
            self._commit(receipt)
            self.metrics.record_redemption()

            logger.info(
                f"Redemption: {wrapped_amount} wrapped -> {base_amount} base "
                f"for {account} at block {block}"
            )
            return receipt

    def _validate_deposit(self, account: str, amount: int):
        if amount < 0:
            raise ValueError(f"Deposit amount must be non-negative, got {amount}")
        if amount == 0:
            raise ZeroAmountError("Deposit", account)

        if not self.oracle.is_deposit_enabled():
            raise DepositsDisabledError(account)

        max_amount = self.oracle.get_max_deposit_amount()
        if amount > max_amount:
            raise CapacityExceededError(amount, max_amount, account)

    def _check_cooldown(self, account: str, block: int):
        last_block = self.records.get_last_deposit_block(account)
        delay = self.get_deposit_delay()
        if not ConversionCalculator.is_cooldown_elapsed(last_block, block, delay):
            raise CooldownActiveError(account, last_block, block, delay)

    @contextmanager
    def _atomic(self):
        """Roll back transactional collaborators if any step fails."""
        participants = []
        for collaborator in (self.oracle, self.sink, self.token):
            if isinstance(collaborator, Transactional) and all(
                collaborator is not p for p, _ in participants
            ):
                participants.append((collaborator, collaborator.snapshot()))

        try:
            yield
        except BaseException:
            for collaborator, snapshot in reversed(participants):
                collaborator.restore(snapshot)
            logger.warning(f"Rolled back {len(participants)} collaborator(s) after failed operation")
            raise

    def _commit(self, receipt: ConversionReceipt):
        self.conversion_history.append(receipt)
        if len(self.conversion_history) > self.max_history:
            del self.conversion_history[: -self.max_history]

        # Conversion already committed; gauge refresh is best effort
        try:
            self.metrics.update_reserve(self.read_reserve_state())
            self.metrics.update_block(receipt.block_number)
        except Exception as e:
            logger.error(f"Failed to refresh reserve metrics after {receipt.conversion_type.value}: {e}")

    def _reject(self, operation: str, account: str, error: GatewayError):
        self.rejection_count += 1
        self.metrics.record_rejection(operation, error)
        logger.warning(f"{operation.capitalize()} rejected for {account}: {error}")

    # Reporting

    def get_recent_conversions(self, limit: int = 20) -> List[ConversionReceipt]:
        if limit <= 0:
            return []
        return self.conversion_history[-limit:]

    def get_gateway_metrics(self) -> Dict[str, float]:
        """Get comprehensive gateway metrics."""
        state = self.read_reserve_state()
        deposits = [r for r in self.conversion_history if isinstance(r, DepositReceipt)]
        redemptions = [r for r in self.conversion_history if isinstance(r, RedemptionReceipt)]
        return {
            'total_base_balance': state.total_base_balance,
            'total_wrapped_supply': state.total_wrapped_supply,
            'exchange_rate': state.exchange_rate,
            'deposit_fee_rate': state.deposit_fee_rate,
            'deposits_enabled': state.deposits_enabled,
            'max_deposit_amount': state.max_deposit_amount,
            'deposit_delay_blocks': state.deposit_delay_blocks,
            'current_block': self.clock.current_block(),
            'total_deposits': len(deposits),
            'total_redemptions': len(redemptions),
            'total_fees': sum(r.fee_amount for r in deposits),
            'rejections': self.rejection_count,
            'tracked_accounts': len(self.records.all_records()),
        }
