"""
Reserve Gateway service entry point.
"""

import uvicorn

from reservegate.config import settings
from reservegate.logging import configure_logging


def main():
    """Run the Reserve Gateway service."""
    configure_logging("reserve-gateway")

    uvicorn.run(
        "reservegate.gateway.api:app",
        host="0.0.0.0",
        port=settings.api_port,
        log_level=settings.monitoring.log_level.lower()
    )


if __name__ == "__main__":
    main()
