"""
Reserve Gateway API endpoints.
"""

import asyncio
from datetime import datetime
from typing import Dict, Optional, Type

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from reservegate.config import settings
from reservegate.health import (
    HealthChecker,
    create_health_endpoints,
    reserve_health_check,
    storage_health_check,
)
from reservegate.logging import get_logger
from reservegate.shared.gateway_errors import (
    CapacityExceededError,
    CooldownActiveError,
    DepositsDisabledError,
    EmptyReserveError,
    GatewayError,
    InsufficientAuthorizationError,
    InsufficientBalanceError,
    InsufficientReserveSupplyError,
    ZeroAmountError,
)

from .service import GatewayService

logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(title="ReserveGate Gateway")

# Global service instance
gateway_service: Optional[GatewayService] = None
consumer_task: Optional[asyncio.Task] = None

health_checker = HealthChecker("reserve-gateway")

ERROR_STATUS: Dict[Type[GatewayError], int] = {
    ZeroAmountError: 400,
    CapacityExceededError: 400,
    InsufficientBalanceError: 400,
    DepositsDisabledError: 403,
    InsufficientAuthorizationError: 403,
    CooldownActiveError: 409,
    InsufficientReserveSupplyError: 409,
    EmptyReserveError: 409,
}


class DepositBody(BaseModel):
    """Deposit request body."""
    account: str = Field(min_length=1)
    amount: int = Field(ge=0, description="Base asset transferred with the call")


class RedeemBody(BaseModel):
    """Redemption request body."""
    account: str = Field(min_length=1)
    wrapped_amount: int = Field(ge=0)


def _require_service() -> GatewayService:
    if not gateway_service:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return gateway_service


def _register_health_checks(service: GatewayService):
    health_checker.register_check("reserve", lambda: reserve_health_check(service.gateway))
    health_checker.register_check("deposit_records", lambda: storage_health_check(service.store))


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """Map gateway errors to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "account": exc.account,
            "timestamp": exc.timestamp.isoformat(),
        },
    )


@app.on_event("startup")
async def startup_event():
    """Initialize service on startup."""
    global gateway_service, consumer_task

    logger.info("Starting Reserve Gateway API...")

    gateway_service = GatewayService(settings)
    _register_health_checks(gateway_service)

    if settings.kafka.enabled:
        consumer_task = asyncio.create_task(gateway_service.start())


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    if gateway_service:
        await gateway_service.stop()
    if consumer_task and not consumer_task.done():
        consumer_task.cancel()


create_health_endpoints(app, health_checker)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Reserve Gateway",
        "version": "1.0.0",
        "status": "active",
        "description": "Base asset <-> wrapped token conversion against the reserve"
    }


@app.get("/status")
async def get_status():
    """Get service status and current state."""
    service = _require_service()

    return {
        "timestamp": datetime.utcnow().isoformat(),
        "service": "reserve-gateway",
        "status": "active" if service.running else "inactive",
        "current_state": service.get_current_state()
    }


@app.get("/quote/deposit")
async def quote_deposit(amount: int = Query(ge=0)):
    """Quote wrapped tokens and fee for a deposit."""
    service = _require_service()
    quote = service.gateway.quote_base_to_wrapped(amount)

    return {
        "base_amount": str(amount),
        "wrapped_amount": str(quote.output_amount),
        "fee_amount": str(quote.fee_amount),
    }


@app.get("/quote/redeem")
async def quote_redeem(amount: int = Query(ge=0)):
    """Quote base asset released for a redemption."""
    service = _require_service()
    base_amount = service.gateway.quote_wrapped_to_base(amount)

    return {
        "wrapped_amount": str(amount),
        "base_amount": str(base_amount),
    }


@app.get("/availability")
async def get_availability():
    """Deposit enable flag and capacity."""
    service = _require_service()
    availability = service.gateway.get_availability()

    return {
        "deposits_enabled": availability.deposits_enabled,
        "max_deposit_amount": str(availability.max_deposit_amount),
    }


@app.get("/deposit-delay")
async def get_deposit_delay():
    """Cooldown length in blocks."""
    service = _require_service()
    return {"deposit_delay_blocks": service.gateway.get_deposit_delay()}


@app.get("/accounts/{account}")
async def get_account(account: str):
    """Cooldown view for an account."""
    service = _require_service()
    view = service.gateway.get_account_view(account)

    return {
        "account": view.account,
        "last_deposit_block": view.last_deposit_block,
        "redeemable_block": view.redeemable_block,
        "current_block": view.current_block,
        "blocks_until_redeemable": view.blocks_until_redeemable,
        "can_redeem": view.can_redeem,
        "status": view.status.value,
        "wrapped_balance": str(service.pool.balance_of(account)),
    }


@app.post("/deposit")
async def deposit(body: DepositBody):
    """Deposit base asset for wrapped tokens."""
    service = _require_service()
    receipt = service.gateway.deposit_base_for_wrapped(body.account, body.amount)

    return {
        "status": "success",
        "timestamp": receipt.timestamp.isoformat(),
        "account": receipt.account,
        "block_number": receipt.block_number,
        "base_amount": str(receipt.base_amount),
        "wrapped_amount": str(receipt.wrapped_amount),
        "fee_amount": str(receipt.fee_amount),
    }


@app.post("/redeem")
async def redeem(body: RedeemBody):
    """Redeem wrapped tokens for base asset."""
    service = _require_service()
    receipt = service.gateway.redeem_wrapped_for_base(body.account, body.wrapped_amount)

    return {
        "status": "success",
        "timestamp": receipt.timestamp.isoformat(),
        "account": receipt.account,
        "block_number": receipt.block_number,
        "wrapped_amount": str(receipt.wrapped_amount),
        "base_amount": str(receipt.base_amount),
    }


@app.get("/conversions/recent")
async def get_recent_conversions(limit: int = 20):
    """Get recent committed conversions."""
    service = _require_service()
    conversions = service.gateway.get_recent_conversions(limit)

    return {
        "timestamp": datetime.utcnow().isoformat(),
        "count": len(conversions),
        "conversions": [c.model_dump(mode="json") for c in conversions],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}
