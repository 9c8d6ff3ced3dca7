"""API-level integration test fixtures.

Provides a TestClient running the full application lifespan, so every
test starts with freshly created services and empty state.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from trade_ledger.api.main import app

CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "default.yaml"


@pytest.fixture
def client(monkeypatch):
    """TestClient with startup and shutdown handled by the lifespan."""
    monkeypatch.setenv("TRADE_LEDGER_CONFIG", str(CONFIG_PATH))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def log_trade(client):
    """Post a trade and return the response body."""

    def _log_trade(**fields):
        payload = {
            "pair": "BTC/USDT",
            "exchange": "Binance",
            "market": "Spot",
            "action": "Buy",
            "order_type": "Limit",
            "price": 100.0,
            "amount": 1.0,
        }
        payload.update(fields)
        response = client.post("/trades", json=payload)
        assert response.status_code == 200
        return response.json()

    return _log_trade
