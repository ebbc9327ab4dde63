"""
Health and readiness check utilities for the gateway service.
"""

from enum import Enum
from typing import Dict, List, Optional, Callable, Any
from datetime import datetime
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field
from reservegate.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""
    name: str
    status: HealthStatus
    message: Optional[str] = None
    last_check: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ServiceHealth(BaseModel):
    """Overall service health status."""
    service: str
    status: HealthStatus
    timestamp: datetime
    components: List[ComponentHealth]
    version: str = "1.0.0"


class HealthChecker:
    """Runs registered component checks for a service."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.checks: Dict[str, Callable[[], ComponentHealth]] = {}
        self.last_results: Dict[str, ComponentHealth] = {}

    def register_check(self, name: str, check_func: Callable[[], ComponentHealth]):
        """Register a health check function."""
        self.checks[name] = check_func
        logger.info(f"Registered health check: {name}")

    def check_health(self) -> ServiceHealth:
        """Run all health checks and return overall status."""
        components = []
        overall_status = HealthStatus.HEALTHY

        for name, check_func in self.checks.items():
            try:
                result = check_func()
                result.last_check = datetime.utcnow()
            except Exception as e:
                logger.error(f"Health check failed for {name}: {e}")
                result = ComponentHealth(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=f"Check failed: {str(e)}",
                    last_check=datetime.utcnow()
                )

            self.last_results[name] = result
            components.append(result)

            # Unhealthy wins over degraded
            if result.status == HealthStatus.UNHEALTHY:
                overall_status = HealthStatus.UNHEALTHY
            elif result.status == HealthStatus.DEGRADED and overall_status == HealthStatus.HEALTHY:
                overall_status = HealthStatus.DEGRADED

        return ServiceHealth(
            service=self.service_name,
            status=overall_status,
            timestamp=datetime.utcnow(),
            components=components
        )

    def is_ready(self) -> bool:
        """Check if service is ready to handle requests."""
        return self.check_health().status != HealthStatus.UNHEALTHY


def create_health_endpoints(app: FastAPI, health_checker: HealthChecker):
    """Add health, readiness and metrics endpoints to FastAPI app."""

    @app.get("/healthz")
    async def health_check() -> ServiceHealth:
        return health_checker.check_health()

    @app.get("/ready")
    async def readiness_check(response: Response):
        if health_checker.is_ready():
            return {"status": "ready"}
        response.status_code = 503
        return {"status": "not ready"}

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Gateway component checks

def reserve_health_check(gateway) -> ComponentHealth:
    """Reserve is degraded while closed to deposits and unhealthy if unreadable."""
    state = gateway.read_reserve_state()
    metadata = {
        "total_base_balance": str(state.total_base_balance),
        "total_wrapped_supply": str(state.total_wrapped_supply),
        "deposits_enabled": state.deposits_enabled,
    }

    if not state.is_bootstrap and state.total_base_balance == 0:
        return ComponentHealth(
            name="reserve",
            status=HealthStatus.UNHEALTHY,
            message="Wrapped supply outstanding against an empty reserve",
            metadata=metadata
        )
    if not state.deposits_enabled:
        return ComponentHealth(
            name="reserve",
            status=HealthStatus.DEGRADED,
            message="Deposits disabled",
            metadata=metadata
        )
    return ComponentHealth(
        name="reserve",
        status=HealthStatus.HEALTHY,
        message="Reserve readable",
        metadata=metadata
    )


def storage_health_check(store) -> ComponentHealth:
    """Check that the deposit record backend answers."""
    ping = getattr(store, "ping", None)
    try:
        if ping is not None and not ping():
            return ComponentHealth(
                name="deposit_records",
                status=HealthStatus.UNHEALTHY,
                message="Storage ping failed",
                metadata={"backend": type(store).__name__}
            )
    except Exception as e:
        return ComponentHealth(
            name="deposit_records",
            status=HealthStatus.UNHEALTHY,
            message=str(e),
            metadata={"backend": type(store).__name__}
        )

    return ComponentHealth(
        name="deposit_records",
        status=HealthStatus.HEALTHY,
        message="Storage reachable",
        metadata={"backend": type(store).__name__}
    )
