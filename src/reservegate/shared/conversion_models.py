"""
Shared conversion models used across services.
"""

from pydantic import BaseModel, Field

# Fixed-point denominator for fee rates (1e18 == 100%)
RATE_PRECISION = 10**18


class ReserveState(BaseModel):
    """Point-in-time view of the reserve pool, as read from the oracle."""
    total_base_balance: int = Field(0, ge=0, description="Base asset held by the reserve")
    total_wrapped_supply: int = Field(0, ge=0, description="Outstanding wrapped token supply")
    deposit_fee_rate: int = Field(0, ge=0, description="Deposit fee as a fraction of 1e18")
    deposits_enabled: bool = Field(True)
    max_deposit_amount: int = Field(0, ge=0, description="Largest single deposit accepted")
    deposit_delay_blocks: int = Field(0, ge=0, description="Blocks to wait after a deposit before redeeming")

    @property
    def is_bootstrap(self) -> bool:
        """True while no wrapped token has been issued."""
        return self.total_wrapped_supply == 0

    @property
    def exchange_rate(self) -> float:
        """Base asset per wrapped token; 1.0 for an empty pool."""
        if self.total_wrapped_supply == 0:
            return 1.0
        return self.total_base_balance / self.total_wrapped_supply


class ConversionQuote(BaseModel):
    """Result of a base -> wrapped price computation."""
    output_amount: int = Field(ge=0, description="Wrapped tokens issued for the input")
    fee_amount: int = Field(ge=0, description="Fee charged on the input, in base asset")
