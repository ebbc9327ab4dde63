"""
Reserve Gateway data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class AccountStatus(str, Enum):
    """Per-account redemption state."""
    NEVER_DEPOSITED = "never_deposited"  # No deposit record
    COOLING_DOWN = "cooling_down"  # Deposited, delay not yet elapsed
    REDEEMABLE = "redeemable"  # Delay elapsed; redeeming does not reset it


class ConversionType(str, Enum):
    """Direction of a conversion."""
    DEPOSIT = "deposit"  # base -> wrapped
    REDEMPTION = "redemption"  # wrapped -> base


class GatewayAvailability(BaseModel):
    """Raw enable flag and capacity, for pre-validating a deposit."""
    deposits_enabled: bool
    max_deposit_amount: int = Field(ge=0)


class ConversionReceipt(BaseModel):
    """Record of a committed conversion."""
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    conversion_type: ConversionType
    account: str
    block_number: int = Field(ge=0)


class DepositReceipt(ConversionReceipt):
    """Record of a committed base -> wrapped deposit."""
    conversion_type: ConversionType = ConversionType.DEPOSIT
    base_amount: int = Field(gt=0, description="Base asset received")
    wrapped_amount: int = Field(ge=0, description="Wrapped tokens credited")
    fee_amount: int = Field(ge=0, description="Fee charged, in base asset")


class RedemptionReceipt(ConversionReceipt):
    """Record of a committed wrapped -> base redemption."""
    conversion_type: ConversionType = ConversionType.REDEMPTION
    wrapped_amount: int = Field(gt=0, description="Wrapped tokens burned")
    base_amount: int = Field(ge=0, description="Base asset released")


class DepositRequest(BaseModel):
    """Request to deposit base asset for wrapped tokens."""
    account: str = Field(min_length=1)
    amount: int = Field(ge=0, description="Base asset transferred with the call")
    request_id: Optional[str] = None


class RedemptionRequest(BaseModel):
    """Request to redeem wrapped tokens for base asset."""
    account: str = Field(min_length=1)
    wrapped_amount: int = Field(ge=0)
    request_id: Optional[str] = None


class AccountView(BaseModel):
    """Cooldown view of a single account."""
    account: str
    last_deposit_block: int
    redeemable_block: int
    current_block: int
    blocks_until_redeemable: int = Field(ge=0)
    can_redeem: bool
    status: AccountStatus
