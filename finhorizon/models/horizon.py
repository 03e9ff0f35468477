"""
Horizon engine: passive income against recurring obligations over time.

This module aggregates assets and liabilities into monthly passive income and
monthly obligations for each future year, builds the year-by-year horizon
series, and searches for the crossover year at which income first covers
obligations.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from .amortization import AmortizationCalculator, PaymentSplit
from .records import (
    DEFAULT_HORIZON_SETTINGS,
    BaseAsset,
    HorizonSettings,
    Liability,
    RealEstateAsset,
)
from .time_grid import add_years, resolve_as_of, round_currency
from .valuation import projected_value

logger = logging.getLogger(__name__)

# The crossover search stops after this many years. This is a fixed product
# limit, not a derived quantity; a plan that needs longer reports no crossover.
MAX_CROSSOVER_YEARS = 50

DEFAULT_SERIES_YEARS = 30


class IncomeBreakdown(BaseModel):
    """Monthly passive income per asset class."""

    real_estate: float = Field(default=0.0, description="Rental income")
    fund: float = Field(default=0.0, description="Income from funds")
    stock: float = Field(default=0.0, description="Income from stocks")
    crypto: float = Field(default=0.0, description="Income from crypto")

    def add(self, kind: str, amount: float) -> None:
        attribute = "real_estate" if kind == "real-estate" else kind
        setattr(self, attribute, getattr(self, attribute) + amount)


class MonthlyIncome(BaseModel):
    """Total monthly passive income with its per-class breakdown."""

    total: float = Field(..., description="Total monthly passive income")
    by_class: IncomeBreakdown = Field(..., description="Income per asset class")


class Obligations(BaseModel):
    """Monthly obligations: loan payments plus the baseline expense."""

    total: float = Field(..., description="Loan payments plus baseline expense")
    loan_total: float = Field(..., description="Sum of loan payments")
    interest: float = Field(..., description="Interest portion of loan payments")
    principal: float = Field(..., description="Principal portion of loan payments")
    baseline_expense: float = Field(..., description="Flat monthly living expense")


class HorizonDataPoint(BaseModel):
    """One year of the horizon series (monthly amounts, rounded to cents)."""

    year: int = Field(..., ge=0, description="Years from now")
    calendar_year: int = Field(..., description="Calendar year of the point")
    monthly_income: float
    monthly_obligations: float
    surplus: float
    net_worth: float
    income_from_real_estate: float
    income_from_funds: float
    income_from_stocks: float
    income_from_crypto: float
    loan_interest: float
    loan_principal: float
    baseline_expense: float


class HorizonSeries(BaseModel):
    """Year-indexed horizon data points, starting at year 0."""

    points: List[HorizonDataPoint] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def to_arrays(self) -> Dict[str, NDArray[np.float64]]:
        """Column view of the series, one array per field."""
        fields = [name for name in HorizonDataPoint.model_fields]
        return {
            name: np.array([getattr(p, name) for p in self.points], dtype=np.float64)
            for name in fields
        }

    def first_crossover(self) -> Optional[HorizonDataPoint]:
        """
        Find the first point where income meets obligations after falling short.

        Returns:
            The crossover point, or None if income never overtakes
            obligations within the series
        """
        for previous, current in zip(self.points, self.points[1:]):
            if (
                current.monthly_income >= current.monthly_obligations
                and previous.monthly_income < previous.monthly_obligations
            ):
                return current
        return None


class HorizonSummary(BaseModel):
    """Headline financial-independence metrics."""

    current_income: float = Field(..., description="Monthly passive income now")
    current_obligations: float = Field(..., description="Monthly obligations now")
    current_surplus: float = Field(..., description="Income minus obligations now")
    current_net_worth: float = Field(..., description="Assets minus loan balances")
    years_to_crossover: Optional[int] = Field(
        None, description="Years until income covers obligations (None if never)"
    )
    crossover_date: Optional[date] = Field(None, description="Date of crossover")
    progress_pct: float = Field(..., description="Income as % of obligations")
    is_already_crossed: bool = Field(
        ..., description="Whether income already covers obligations"
    )


def monthly_income_for_asset(
    asset: BaseAsset,
    years: float,
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> float:
    """
    Calculate projected monthly passive income from a single asset.

    Real estate produces its recorded rental income, grown by the rental
    growth rate. Every other class produces its projected value times the
    class withdrawal rate, spread over twelve months.

    Args:
        asset: The asset
        years: Years from ``as_of``
        settings: Horizon settings
        as_of: Reference date (defaults to today)

    Returns:
        Monthly income
    """
    if isinstance(asset, RealEstateAsset):
        rental_income = asset.monthly_rental_income or 0.0
        if rental_income == 0:
            return 0.0
        growth_factor = (1 + settings.rental_growth_rate / 100) ** years
        return rental_income * growth_factor

    annual_rate = settings.withdrawal_rates.rate_for(asset.kind) / 100  # type: ignore[attr-defined]
    return projected_value(asset, years, as_of) * annual_rate / 12


def monthly_income_at_year(
    assets: Sequence[BaseAsset],
    years: float,
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> MonthlyIncome:
    """Total monthly passive income ``years`` from now, with per-class breakdown."""
    by_class = IncomeBreakdown()
    for asset in assets:
        by_class.add(
            asset.kind,  # type: ignore[attr-defined]
            monthly_income_for_asset(asset, years, settings, as_of),
        )

    total = by_class.real_estate + by_class.fund + by_class.stock + by_class.crypto
    return MonthlyIncome(total=total, by_class=by_class)


def total_obligations_at_month(
    liabilities: Sequence[Liability],
    month_offset: int,
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> Obligations:
    """
    Sum monthly obligations ``month_offset`` months from now.

    Loan payments honour the settings' rate override, refinancing and
    interest-only toggles; the flat baseline expense is added on top.

    Args:
        liabilities: All liabilities
        month_offset: Months from ``as_of``
        settings: Horizon settings
        as_of: Reference date (defaults to today)

    Returns:
        Obligations with the loan payment split
    """
    loans = PaymentSplit()
    for liability in liabilities:
        loans = loans + AmortizationCalculator.payment_at(
            liability,
            month_offset,
            rate_override=settings.interest_rate_override,
            use_refinancing=settings.refinancing_enabled,
            as_of=as_of,
            use_interest_only=settings.interest_only_enabled,
        )

    return Obligations(
        total=loans.total + settings.monthly_baseline_expense,
        loan_total=loans.total,
        interest=loans.interest,
        principal=loans.principal,
        baseline_expense=settings.monthly_baseline_expense,
    )


def net_worth_at_year(
    assets: Sequence[BaseAsset],
    liabilities: Sequence[Liability],
    years: float,
    as_of: Optional[date] = None,
) -> float:
    """Projected asset values minus liability balances ``years`` from now."""
    total_assets = sum(projected_value(asset, years, as_of) for asset in assets)
    total_loans = sum(
        AmortizationCalculator.balance_after_years(liability, years, as_of=as_of)
        for liability in liabilities
    )
    return total_assets - total_loans


def build_horizon_series(
    assets: Sequence[BaseAsset],
    liabilities: Sequence[Liability],
    max_years: int = DEFAULT_SERIES_YEARS,
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> HorizonSeries:
    """
    Build the yearly horizon series for ``year = 0..max_years`` inclusive.

    Args:
        assets: All assets
        liabilities: All liabilities
        max_years: Last year offset to include
        settings: Horizon settings
        as_of: Reference date (defaults to today)

    Returns:
        A fresh series on every call
    """
    as_of = resolve_as_of(as_of)
    points = []

    for year in range(max_years + 1):
        income = monthly_income_at_year(assets, year, settings, as_of)
        obligations = total_obligations_at_month(liabilities, year * 12, settings, as_of)
        net_worth = net_worth_at_year(assets, liabilities, year, as_of)

        points.append(
            HorizonDataPoint(
                year=year,
                calendar_year=as_of.year + year,
                monthly_income=round_currency(income.total),
                monthly_obligations=round_currency(obligations.total),
                surplus=round_currency(income.total - obligations.total),
                net_worth=round_currency(net_worth),
                income_from_real_estate=round_currency(income.by_class.real_estate),
                income_from_funds=round_currency(income.by_class.fund),
                income_from_stocks=round_currency(income.by_class.stock),
                income_from_crypto=round_currency(income.by_class.crypto),
                loan_interest=round_currency(obligations.interest),
                loan_principal=round_currency(obligations.principal),
                baseline_expense=round_currency(obligations.baseline_expense),
            )
        )

    return HorizonSeries(points=points)


def find_crossover_year(
    assets: Sequence[BaseAsset],
    liabilities: Sequence[Liability],
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> Optional[int]:
    """
    Linear scan for the first year in 1..MAX_CROSSOVER_YEARS where income
    covers obligations.

    Returns:
        The crossover year, or None if it is not reached within the limit
    """
    for year in range(1, MAX_CROSSOVER_YEARS + 1):
        income = monthly_income_at_year(assets, year, settings, as_of)
        obligations = total_obligations_at_month(liabilities, year * 12, settings, as_of)
        if income.total >= obligations.total:
            return year
    return None


def summarize(
    assets: Sequence[BaseAsset],
    liabilities: Sequence[Liability],
    settings: HorizonSettings = DEFAULT_HORIZON_SETTINGS,
    as_of: Optional[date] = None,
) -> HorizonSummary:
    """
    Summarize where the portfolio stands against its obligations.

    Income already covering non-zero obligations (or any income with no
    obligations) counts as crossed at year 0 and skips the search. With
    neither income nor obligations there is nothing to cross.

    Args:
        assets: All assets
        liabilities: All liabilities
        settings: Horizon settings
        as_of: Reference date (defaults to today)

    Returns:
        Horizon summary with monetary values rounded to cents
    """
    as_of = resolve_as_of(as_of)
    income = monthly_income_at_year(assets, 0, settings, as_of).total
    obligations = total_obligations_at_month(liabilities, 0, settings, as_of).total
    net_worth = net_worth_at_year(assets, liabilities, 0, as_of)

    if obligations > 0:
        progress = income / obligations * 100
    else:
        progress = 100.0 if income > 0 else 0.0

    is_already_crossed = income >= obligations and (obligations > 0 or income > 0)

    years_to_crossover: Optional[int] = None
    if is_already_crossed:
        years_to_crossover = 0
    elif obligations > 0:
        years_to_crossover = find_crossover_year(assets, liabilities, settings, as_of)

    crossover_date = (
        add_years(as_of, years_to_crossover) if years_to_crossover is not None else None
    )

    logger.debug(
        f"Horizon summary as of {as_of}: income {income:.2f}, "
        f"obligations {obligations:.2f}, crossover in {years_to_crossover} years"
    )

    return HorizonSummary(
        current_income=round_currency(income),
        current_obligations=round_currency(obligations),
        current_surplus=round_currency(income - obligations),
        current_net_worth=round_currency(net_worth),
        years_to_crossover=years_to_crossover,
        crossover_date=crossover_date,
        progress_pct=round_currency(progress),
        is_already_crossed=is_already_crossed,
    )
