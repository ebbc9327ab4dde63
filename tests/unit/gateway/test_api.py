"""
Unit tests for Reserve Gateway API endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from reservegate.config import GatewaySettings, Settings
from reservegate.gateway.api import app
from reservegate.gateway.service import GatewayService


class TestGatewayAPI:
    """Test Reserve Gateway API endpoints."""

    @pytest.fixture
    def client(self):
        """Create test client (startup hooks are not run)."""
        return TestClient(app)

    @pytest.fixture
    def service(self):
        """Create a real service over the in-memory pool."""
        return GatewayService(
            Settings(
                gateway=GatewaySettings(
                    initial_base_balance=1000,
                    initial_wrapped_supply=900,
                    deposit_fee_rate=5 * 10**16,
                    max_deposit_amount=10_000,
                    deposit_delay_blocks=10,
                    start_block=100,
                )
            )
        )

    @pytest.fixture
    def patched(self, service):
        with patch('reservegate.gateway.api.gateway_service', service):
            yield service

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Reserve Gateway"
        assert data["version"] == "1.0.0"

    def test_status_no_service(self, client):
        with patch('reservegate.gateway.api.gateway_service', None):
            response = client.get("/status")
            assert response.status_code == 503

    def test_status_with_service(self, client, patched):
        response = client.get("/status")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "reserve-gateway"
        assert data["status"] == "inactive"
        assert data["current_state"]["reserve_state"]["total_base_balance"] == 1000

    def test_quote_deposit(self, client, patched):
        response = client.get("/quote/deposit", params={"amount": 100})
        assert response.status_code == 200
        assert response.json() == {
            "base_amount": "100",
            "wrapped_amount": "85",
            "fee_amount": "5",
        }

    def test_quote_deposit_negative(self, client, patched):
        response = client.get("/quote/deposit", params={"amount": -1})
        assert response.status_code == 422

    def test_quote_redeem(self, client, patched):
        response = client.get("/quote/redeem", params={"amount": 90})
        assert response.status_code == 200
        assert response.json()["base_amount"] == "100"

    def test_quote_redeem_empty_pool(self, client):
        empty = GatewayService(Settings(gateway=GatewaySettings()))
        with patch('reservegate.gateway.api.gateway_service', empty):
            response = client.get("/quote/redeem", params={"amount": 1})

        assert response.status_code == 409
        assert response.json()["error"] == "InsufficientReserveSupplyError"

    def test_availability_and_delay(self, client, patched):
        response = client.get("/availability")
        assert response.json() == {"deposits_enabled": True, "max_deposit_amount": "10000"}

        response = client.get("/deposit-delay")
        assert response.json() == {"deposit_delay_blocks": 10}

    def test_deposit(self, client, patched):
        response = client.post("/deposit", json={"account": "alice", "amount": 100})
        assert response.status_code == 200
        data = response.json()
        assert data["wrapped_amount"] == "85"
        assert data["block_number"] == 100

        response = client.get("/accounts/alice")
        data = response.json()
        assert data["last_deposit_block"] == 100
        assert data["redeemable_block"] == 110
        assert data["status"] == "cooling_down"
        assert data["can_redeem"] is False
        assert data["blocks_until_redeemable"] == 10
        assert data["wrapped_balance"] == "85"

    @pytest.mark.parametrize(
        "settings_update,amount,status_code,error",
        [
            ({}, 0, 400, "ZeroAmountError"),
            ({"deposits_enabled": False}, 100, 403, "DepositsDisabledError"),
            ({"max_deposit_amount": 99}, 100, 400, "CapacityExceededError"),
        ],
    )
    def test_deposit_errors(self, client, patched, settings_update, amount, status_code, error):
        patched.pool.update_settings(**settings_update)

        response = client.post("/deposit", json={"account": "alice", "amount": amount})

        assert response.status_code == status_code
        assert response.json()["error"] == error
        assert response.json()["account"] == "alice"

    def test_redeem_flow(self, client, patched):
        client.post("/deposit", json={"account": "alice", "amount": 100})
        patched.pool.approve("alice", "reserve-gateway", 85)

        response = client.post("/redeem", json={"account": "alice", "wrapped_amount": 85})
        assert response.status_code == 409
        assert response.json()["error"] == "CooldownActiveError"

        patched.clock.advance_to(110)
        response = client.post("/redeem", json={"account": "alice", "wrapped_amount": 85})
        assert response.status_code == 200
        assert response.json()["base_amount"] == "94"

        response = client.get("/conversions/recent")
        data = response.json()
        assert data["count"] == 2
        assert [c["conversion_type"] for c in data["conversions"]] == ["deposit", "redemption"]

    def test_redeem_without_allowance(self, client, patched):
        patched.pool.credit_to("bob", 10)

        response = client.post("/redeem", json={"account": "bob", "wrapped_amount": 10})

        assert response.status_code == 403
        assert response.json()["error"] == "InsufficientAuthorizationError"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "reservegate_deposits_total" in response.text
