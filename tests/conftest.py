"""
Pytest configuration and shared fixtures.
"""
from decimal import Decimal

import pytest

from growthcalc.app import create_app
from growthcalc.models import CalculatorConfig


@pytest.fixture
def config():
    """10k account, target left unset (defaults to 10,800), 6.5R."""
    return CalculatorConfig(
        initial_balance=Decimal("10000"),
        profit_target_input=Decimal("0"),
        default_risk_percentage=Decimal("1.23"),
        default_win_multiplier=Decimal("6.5"),
    )


@pytest.fixture
def app(tmp_path):
    app = create_app(db_path=str(tmp_path / "calc.db"))
    app.config["TESTING"] = True
    yield app
    app.extensions["growthcalc_store"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["growthcalc_store"]
