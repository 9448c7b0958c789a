"""Tests for spotpulse/presentation/api/routes.py"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from spotpulse.container import Container
from spotpulse.presentation.api.routes import init_routes, router
from spotpulse.shared.config.settings import Settings
from tests.conftest import StaticMetadata


@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(router)
    yield TestClient(app)
    init_routes(None)


@pytest.fixture
def container():
    c = Container(settings=Settings(_env_file=None))
    c.override("metadata", StaticMetadata())
    return c


class TestRoutes:

    def test_not_ready_without_container(self, client):
        init_routes(None)

        assert client.get("/api/health").json()["ready"] is False
        assert client.get("/api/ledger").status_code == 503

    def test_ledger_and_position(self, client, container):
        init_routes(container)

        ledger = client.get("/api/ledger").json()
        assert ledger["balances"] == {"USDT": 100.0}
        assert ledger["buys"] == 0
        assert client.get("/api/position").json() == {"position": None}

    def test_status(self, client, container):
        init_routes(container)

        body = client.get("/api/status").json()

        assert body["strategy"]["name"] == "crossover_trend"
        assert body["feed"]["connected"] is False
        assert body["engine"]["position"] is None

    def test_outcomes_limit_validation(self, client, container):
        init_routes(container)

        assert client.get("/api/outcomes").json() == {"count": 0, "outcomes": []}
        assert client.get("/api/outcomes?limit=0").status_code == 422
