"""
Valuation engine for asset projections.

This module implements compound-interest valuation of assets. The current value
of an asset is reconstructed from a baseline, either the original acquisition
(amount invested on the acquisition date) or a later manually recorded value,
and future values are projected forward from that reconstruction.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from .records import BaseAsset, contributes_monthly
from .time_grid import months_between, resolve_as_of, years_between

logger = logging.getLogger(__name__)


def compound_value(principal: float, annual_rate_pct: float, years: float) -> float:
    """
    Calculate value under annual compounding.

    FV = PV × (1 + r)^n. Negative ``years`` discounts the value back in time.

    Args:
        principal: Starting value
        annual_rate_pct: Annual rate as a percentage (7 for 7%)
        years: Number of years, may be fractional or negative

    Returns:
        Compounded value
    """
    rate = annual_rate_pct / 100
    return principal * (1 + rate) ** years


def contributions_value(
    monthly_contribution: float, annual_rate_pct: float, months: float
) -> float:
    """
    Future value of an ordinary annuity of monthly contributions.

    FV = PMT × ((1 + r/12)^m - 1) / (r/12), or PMT × m when the rate is zero.

    Args:
        monthly_contribution: Contribution made at the end of each month
        annual_rate_pct: Annual rate as a percentage
        months: Number of contributions

    Returns:
        Accumulated value of the contributions
    """
    monthly_rate = annual_rate_pct / 100 / 12
    if monthly_rate == 0:
        return monthly_contribution * months
    return monthly_contribution * ((1 + monthly_rate) ** months - 1) / monthly_rate


def value_with_contributions(
    principal: float,
    annual_rate_pct: float,
    years: float,
    monthly_contribution: float,
) -> float:
    """
    Calculate future value with monthly contributions.

    The principal compounds annually while contributions compound at the
    monthly-equivalent rate over ``years × 12`` months.

    Args:
        principal: Starting value
        annual_rate_pct: Annual rate as a percentage
        years: Number of years to project
        monthly_contribution: Monthly contribution amount

    Returns:
        Future value including contributions
    """
    return compound_value(principal, annual_rate_pct, years) + contributions_value(
        monthly_contribution, annual_rate_pct, years * 12
    )


def reconstructed_current_value(
    asset: BaseAsset, as_of: Optional[date] = None
) -> float:
    """
    Reconstruct the value of an asset as of a date.

    The baseline is the recorded value and its date when present, otherwise
    the amount invested on the acquisition date. The two baselines are never
    blended. Funds with a monthly contribution also accumulate contributions
    for the whole calendar months since the baseline date; contributions
    before the baseline date are already reflected in a recorded value.

    Args:
        asset: The asset to value
        as_of: Date to value the asset at (defaults to today)

    Returns:
        Reconstructed value; the baseline itself when the baseline date is
        not before ``as_of``
    """
    as_of = resolve_as_of(as_of)
    start_value = asset.baseline_value
    start_date = asset.baseline_date

    elapsed_years = years_between(start_date, as_of)
    if elapsed_years <= 0:
        if elapsed_years < 0:
            logger.debug(
                f"Baseline for asset {asset.id} is dated {start_date}, after {as_of}; "
                "returning it unchanged"
            )
        return start_value

    compounded = compound_value(start_value, asset.expected_annual_return, elapsed_years)

    if contributes_monthly(asset):
        elapsed_months = months_between(start_date, as_of)
        if elapsed_months <= 0:
            return compounded
        return compounded + contributions_value(
            asset.monthly_contribution,  # type: ignore[attr-defined]
            asset.expected_annual_return,
            elapsed_months,
        )

    return compounded


def projected_value(
    asset: BaseAsset, years: float, as_of: Optional[date] = None
) -> float:
    """
    Project the value of an asset ``years`` into the future.

    The reconstructed current value is the principal of the projection, so a
    recorded value correction carries through every future year.

    Args:
        asset: The asset to project
        years: Years from ``as_of``
        as_of: Reference date (defaults to today)

    Returns:
        Projected value
    """
    current_value = reconstructed_current_value(asset, as_of)

    if contributes_monthly(asset):
        return value_with_contributions(
            current_value,
            asset.expected_annual_return,
            years,
            asset.monthly_contribution,  # type: ignore[attr-defined]
        )

    return compound_value(current_value, asset.expected_annual_return, years)


def contributions_since(
    asset: BaseAsset, start: date, as_of: Optional[date] = None
) -> float:
    """
    Total monthly contributions paid into an asset since a date.

    Args:
        asset: The asset
        start: First date to count contributions from
        as_of: Last date to count contributions to (defaults to today)

    Returns:
        Sum of contributions (0 for assets without contributions)
    """
    if not contributes_monthly(asset):
        return 0.0

    elapsed_months = months_between(start, resolve_as_of(as_of))
    if elapsed_months <= 0:
        return 0.0

    return asset.monthly_contribution * elapsed_months  # type: ignore[attr-defined]


def total_current_value(
    assets: Iterable[BaseAsset], as_of: Optional[date] = None
) -> float:
    """Sum of reconstructed current values."""
    return sum(reconstructed_current_value(asset, as_of) for asset in assets)


def total_contributed(
    assets: Iterable[BaseAsset], as_of: Optional[date] = None
) -> float:
    """
    Total amount actually put into the assets.

    Counts the amount invested plus monthly contributions made since the
    acquisition date, so a recorded value never rewrites contribution history.
    """
    total = 0.0
    for asset in assets:
        total += asset.amount_invested
        total += contributions_since(asset, asset.acquisition_date, as_of)
    return total


def total_gain(assets: Iterable[BaseAsset], as_of: Optional[date] = None) -> float:
    """Current value minus amount contributed."""
    assets = list(assets)
    return total_current_value(assets, as_of) - total_contributed(assets, as_of)


def percentage_gain(
    assets: Iterable[BaseAsset], as_of: Optional[date] = None
) -> float:
    """Gain as a percentage of amount contributed (0 if nothing was contributed)."""
    assets = list(assets)
    contributed = total_contributed(assets, as_of)
    if contributed == 0:
        return 0.0
    return total_gain(assets, as_of) / contributed * 100
