"""
Portfolio-level reports built on the valuation engine.

Summaries, fixed-horizon projections, allocation by asset class, yearly
growth per class and equity of assets financed by linked liabilities. Every
monetary value returned here is rounded to cents.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .amortization import AmortizationCalculator
from .records import ASSET_KINDS, BaseAsset, Liability, contributes_monthly
from .time_grid import PROJECTION_YEARS, resolve_as_of, round_currency
from .valuation import (
    percentage_gain,
    projected_value,
    reconstructed_current_value,
    total_contributed,
    total_current_value,
    total_gain,
)


class Projection(BaseModel):
    """Projected value at a horizon, with gain against today's value."""

    year: int = Field(..., ge=0, description="Years from now")
    value: float = Field(..., description="Projected value")
    total_gain: float = Field(..., description="Projected value minus current value")
    percentage_gain: float = Field(..., description="Gain as % of current value")


class AssetProjection(BaseModel):
    """Fixed-horizon projections for one asset."""

    asset_id: str
    projections: List[Projection]


class ProjectionBreakdown(BaseModel):
    """Composition of a projected portfolio value."""

    principal: float = Field(..., description="Current value of all assets")
    contributions: float = Field(..., description="Contributions over the period")
    growth: float = Field(..., description="Growth beyond principal and contributions")
    total: float = Field(..., description="Projected total value")


class PortfolioSummary(BaseModel):
    """Current totals across all assets."""

    total_value: float
    total_invested: float
    total_gain: float
    percentage_gain: float
    investment_count: int


class AllocationSlice(BaseModel):
    """Share of portfolio value held in one asset class."""

    kind: str
    value: float
    percentage: float
    count: int


class GrowthPoint(BaseModel):
    """Projected value per asset class for one year."""

    year: int
    calendar_year: int
    total: float
    by_kind: Dict[str, float]


class LinkedBalance(BaseModel):
    liability_id: str
    liability_name: str
    remaining_balance: float


class EquityPosition(BaseModel):
    """Equity in an asset financed by one or more liabilities."""

    asset_id: str
    asset_name: str
    asset_value: float
    linked_liabilities: List[LinkedBalance]
    total_liability_balance: float
    equity: float
    equity_percentage: float


def _gain_pct(gain: float, base: float) -> float:
    if base == 0:
        return 0.0
    return gain / base * 100


def _projection(year: int, value: float, current_value: float) -> Projection:
    gain = value - current_value
    return Projection(
        year=year,
        value=round_currency(value),
        total_gain=round_currency(gain),
        percentage_gain=round_currency(_gain_pct(gain, current_value)),
    )


def asset_projections(
    asset: BaseAsset,
    years: Sequence[int] = PROJECTION_YEARS,
    as_of: Optional[date] = None,
) -> AssetProjection:
    """Project a single asset to each horizon in ``years``."""
    current_value = reconstructed_current_value(asset, as_of)
    return AssetProjection(
        asset_id=asset.id,
        projections=[
            _projection(year, projected_value(asset, year, as_of), current_value)
            for year in years
        ],
    )


def portfolio_projections(
    assets: Sequence[BaseAsset],
    years: Sequence[int] = PROJECTION_YEARS,
    as_of: Optional[date] = None,
) -> List[Projection]:
    """Project the whole portfolio to each horizon in ``years``."""
    current_value = total_current_value(assets, as_of)
    return [
        _projection(
            year,
            sum(projected_value(asset, year, as_of) for asset in assets),
            current_value,
        )
        for year in years
    ]


def projection_breakdown(
    assets: Sequence[BaseAsset], years: int, as_of: Optional[date] = None
) -> ProjectionBreakdown:
    """
    Split a projected portfolio value into principal, contributions and growth.

    Args:
        assets: All assets
        years: Years from ``as_of``
        as_of: Reference date (defaults to today)

    Returns:
        Breakdown where growth is whatever principal and contributions
        do not explain
    """
    principal = total_current_value(assets, as_of)
    contributions = sum(
        asset.monthly_contribution * 12 * years  # type: ignore[attr-defined]
        for asset in assets
        if contributes_monthly(asset)
    )
    future_value = sum(projected_value(asset, years, as_of) for asset in assets)

    return ProjectionBreakdown(
        principal=round_currency(principal),
        contributions=round_currency(contributions),
        growth=round_currency(future_value - principal - contributions),
        total=round_currency(future_value),
    )


def portfolio_summary(
    assets: Sequence[BaseAsset], as_of: Optional[date] = None
) -> PortfolioSummary:
    """Current value, amount invested and gain across all assets."""
    return PortfolioSummary(
        total_value=round_currency(total_current_value(assets, as_of)),
        total_invested=round_currency(total_contributed(assets, as_of)),
        total_gain=round_currency(total_gain(assets, as_of)),
        percentage_gain=round_currency(percentage_gain(assets, as_of)),
        investment_count=len(assets),
    )


def allocation(
    assets: Sequence[BaseAsset], years: int = 0, as_of: Optional[date] = None
) -> List[AllocationSlice]:
    """
    Allocation of portfolio value by asset class.

    Args:
        assets: All assets
        years: Years from ``as_of`` (0 for the current allocation)
        as_of: Reference date (defaults to today)

    Returns:
        One slice per class held, largest value first
    """
    groups: Dict[str, Dict[str, float]] = {}
    for asset in assets:
        group = groups.setdefault(asset.kind, {"value": 0.0, "count": 0})  # type: ignore[attr-defined]
        group["value"] += projected_value(asset, years, as_of)
        group["count"] += 1

    total_value = sum(group["value"] for group in groups.values())
    slices = [
        AllocationSlice(
            kind=kind,
            value=round_currency(group["value"]),
            percentage=round_currency(_gain_pct(group["value"], total_value)),
            count=int(group["count"]),
        )
        for kind, group in groups.items()
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def growth_series(
    assets: Sequence[BaseAsset], max_years: int = 20, as_of: Optional[date] = None
) -> List[GrowthPoint]:
    """Projected value per asset class for ``year = 0..max_years``."""
    as_of = resolve_as_of(as_of)
    points = []

    for year in range(max_years + 1):
        by_kind = {kind: 0.0 for kind in ASSET_KINDS}
        for asset in assets:
            by_kind[asset.kind] += projected_value(asset, year, as_of)  # type: ignore[attr-defined]

        points.append(
            GrowthPoint(
                year=year,
                calendar_year=as_of.year + year,
                total=round_currency(sum(by_kind.values())),
                by_kind={kind: round_currency(v) for kind, v in by_kind.items()},
            )
        )

    return points


def equity_positions(
    assets: Sequence[BaseAsset],
    liabilities: Sequence[Liability],
    as_of: Optional[date] = None,
) -> List[EquityPosition]:
    """
    Equity of every asset referenced by a liability's ``linked_asset_id``.

    Liabilities pointing at an unknown asset are reported against a zero
    asset value.
    """
    as_of = resolve_as_of(as_of)
    assets_by_id = {asset.id: asset for asset in assets}

    linked: Dict[str, List[Liability]] = {}
    for liability in liabilities:
        if liability.linked_asset_id:
            linked.setdefault(liability.linked_asset_id, []).append(liability)

    positions = []
    for asset_id, loans in linked.items():
        asset = assets_by_id.get(asset_id)
        asset_value = reconstructed_current_value(asset, as_of) if asset else 0.0
        balances = [
            LinkedBalance(
                liability_id=loan.id,
                liability_name=loan.name,
                remaining_balance=round_currency(
                    AmortizationCalculator.balance_at_date(loan, as_of)
                ),
            )
            for loan in loans
        ]
        total_balance = sum(b.remaining_balance for b in balances)
        equity = asset_value - total_balance

        positions.append(
            EquityPosition(
                asset_id=asset_id,
                asset_name=asset.name if asset else "Unknown asset",
                asset_value=round_currency(asset_value),
                linked_liabilities=balances,
                total_liability_balance=round_currency(total_balance),
                equity=round_currency(equity),
                equity_percentage=round_currency(
                    equity / asset_value * 100 if asset_value > 0 else 0.0
                ),
            )
        )

    return positions
