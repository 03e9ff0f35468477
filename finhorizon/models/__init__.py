"""Projection engine: records, valuation, amortization and horizon analysis."""

from .records import (
    Asset,
    BaseAsset,
    CryptoAsset,
    FundAsset,
    HorizonSettings,
    Liability,
    RealEstateAsset,
    StockAsset,
    WithdrawalRates,
)
from .amortization import (
    REFINANCING_TERM_MONTHS,
    AmortizationCalculator,
    LiabilityProjection,
    PaymentSplit,
    ScheduleEntry,
)
from .horizon import (
    MAX_CROSSOVER_YEARS,
    HorizonDataPoint,
    HorizonSeries,
    HorizonSummary,
    build_horizon_series,
    monthly_income_at_year,
    net_worth_at_year,
    summarize,
    total_obligations_at_month,
)
from .valuation import (
    compound_value,
    projected_value,
    reconstructed_current_value,
    value_with_contributions,
)

__all__ = [
    "Asset",
    "BaseAsset",
    "StockAsset",
    "FundAsset",
    "RealEstateAsset",
    "CryptoAsset",
    "Liability",
    "HorizonSettings",
    "WithdrawalRates",
    "AmortizationCalculator",
    "LiabilityProjection",
    "PaymentSplit",
    "ScheduleEntry",
    "REFINANCING_TERM_MONTHS",
    "MAX_CROSSOVER_YEARS",
    "HorizonDataPoint",
    "HorizonSeries",
    "HorizonSummary",
    "build_horizon_series",
    "monthly_income_at_year",
    "net_worth_at_year",
    "summarize",
    "total_obligations_at_month",
    "compound_value",
    "projected_value",
    "reconstructed_current_value",
    "value_with_contributions",
]
