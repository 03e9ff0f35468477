"""
Pytest configuration and shared fixtures for the projection engine tests.
"""

import os
from datetime import date

import pytest

# Settings require a secret key before the app factory can run
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from finhorizon import create_app
from finhorizon.config import reset_global_settings
from finhorizon.models.records import (
    CryptoAsset,
    FundAsset,
    Liability,
    RealEstateAsset,
    StockAsset,
)


@pytest.fixture
def as_of():
    """Fixed reference date so projections do not depend on today."""
    return date(2025, 1, 1)


@pytest.fixture
def stock():
    """A stock bought two years before the reference date."""
    return StockAsset(
        id="stock-1",
        name="Index Shares",
        acquisition_date=date(2023, 1, 1),
        amount_invested=10000,
        expected_annual_return=7,
    )


@pytest.fixture
def fund():
    """An index fund with a monthly contribution."""
    return FundAsset(
        id="fund-1",
        name="Global Index",
        acquisition_date=date(2024, 1, 1),
        amount_invested=5000,
        expected_annual_return=6,
        monthly_contribution=200,
    )


@pytest.fixture
def rental():
    """A rental property with recorded rent."""
    return RealEstateAsset(
        id="flat-1",
        name="City Flat",
        acquisition_date=date(2020, 6, 1),
        amount_invested=250000,
        expected_annual_return=3,
        monthly_rental_income=1200,
    )


@pytest.fixture
def crypto():
    """A crypto holding."""
    return CryptoAsset(
        id="btc-1",
        name="Bitcoin",
        acquisition_date=date(2024, 1, 1),
        amount_invested=2000,
        expected_annual_return=10,
    )


@pytest.fixture
def mortgage():
    """A 30-year annuity mortgage that started at the reference date."""
    return Liability(
        id="mortgage-1",
        name="Flat Mortgage",
        kind="mortgage",
        principal=300000,
        annual_interest_rate=3.6,
        start_date=date(2025, 1, 1),
        term_months=360,
        repayment_type="annuity",
        linked_asset_id="flat-1",
    )


@pytest.fixture
def serial_loan():
    """A 10-year serial student loan."""
    return Liability(
        id="student-1",
        name="Student Loan",
        kind="student",
        principal=120000,
        annual_interest_rate=4.8,
        start_date=date(2025, 1, 1),
        term_months=120,
        repayment_type="serial",
    )


@pytest.fixture
def app():
    """Flask app built from fresh settings."""
    reset_global_settings()
    app = create_app("testing")
    yield app
    reset_global_settings()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
