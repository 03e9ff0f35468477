"""
Pydantic models for the records consumed by the projection engine.

Assets and liabilities are immutable inputs supplied by the caller. Asset
records form a tagged union on ``kind``; the engines dispatch on that tag
rather than on per-type behaviour. ``HorizonSettings`` is the explicit
configuration value passed into every horizon calculation.
"""

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

AssetKind = Literal["stock", "fund", "real-estate", "crypto"]
LiabilityKind = Literal["mortgage", "student", "car", "personal", "other"]
RepaymentType = Literal["annuity", "serial"]

ASSET_KINDS: List[str] = ["stock", "fund", "real-estate", "crypto"]


class BaseAsset(BaseModel):
    """
    Fields shared by every asset variant.

    Valuation starts from ``recorded_value`` at ``recorded_value_date`` when
    both are set, otherwise from ``amount_invested`` at ``acquisition_date``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Asset identifier")
    name: str = Field(default="", description="Display name")
    acquisition_date: date = Field(..., description="Date the asset was acquired")
    amount_invested: float = Field(
        ..., ge=0, description="Originally invested amount"
    )
    expected_annual_return: float = Field(
        ..., description="Expected annual return as a percentage (7 for 7%)"
    )
    recorded_value: Optional[float] = Field(
        default=None, ge=0, description="Manually recorded value override"
    )
    recorded_value_date: Optional[date] = Field(
        default=None, description="Date the recorded value was observed"
    )
    notes: Optional[str] = Field(default=None, description="Free-form notes")

    @model_validator(mode="after")
    def validate_recorded_value_pair(self):
        if (self.recorded_value is None) != (self.recorded_value_date is None):
            raise ValueError(
                "recorded_value and recorded_value_date must be set together"
            )
        return self

    @property
    def has_recorded_value(self) -> bool:
        return self.recorded_value is not None and self.recorded_value_date is not None

    @property
    def baseline_value(self) -> float:
        """Value compounding starts from."""
        if self.has_recorded_value:
            return self.recorded_value  # type: ignore[return-value]
        return self.amount_invested

    @property
    def baseline_date(self) -> date:
        """Date compounding starts from."""
        if self.has_recorded_value:
            return self.recorded_value_date  # type: ignore[return-value]
        return self.acquisition_date


class StockAsset(BaseAsset):
    """Individual stock holding."""

    kind: Literal["stock"] = "stock"
    ticker: Optional[str] = Field(default=None, description="Ticker symbol")


class FundAsset(BaseAsset):
    """Fund holding with an optional fixed monthly contribution."""

    kind: Literal["fund"] = "fund"
    fund_type: Literal["index", "etf", "mutual", "other"] = Field(
        default="index", description="Type of fund"
    )
    monthly_contribution: float = Field(
        default=0, ge=0, description="Fixed monthly contribution amount"
    )


class RealEstateAsset(BaseAsset):
    """Property holding; passive income comes from recorded rent."""

    kind: Literal["real-estate"] = "real-estate"
    property_type: Literal["residential", "commercial", "land", "reit", "other"] = (
        Field(default="residential", description="Type of property")
    )
    monthly_rental_income: Optional[float] = Field(
        default=None, ge=0, description="Actual monthly rental income"
    )


class CryptoAsset(BaseAsset):
    """Crypto currency holding."""

    kind: Literal["crypto"] = "crypto"
    ticker: Optional[str] = Field(default=None, description="Ticker symbol")


Asset = Annotated[
    Union[StockAsset, FundAsset, RealEstateAsset, CryptoAsset],
    Field(discriminator="kind"),
]


def contributes_monthly(asset: BaseAsset) -> bool:
    """Whether the asset accrues fixed monthly contributions."""
    return isinstance(asset, FundAsset) and asset.monthly_contribution > 0


class Liability(BaseModel):
    """Loan record (mortgage, student, car, personal or other)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Liability identifier")
    name: str = Field(default="", description="Display name")
    kind: LiabilityKind = Field(default="other", description="Type of loan")
    principal: float = Field(..., gt=0, description="Original loan amount")
    annual_interest_rate: float = Field(
        ..., ge=0, description="Annual interest rate as a percentage (3.5 for 3.5%)"
    )
    start_date: date = Field(..., description="Date the loan started")
    term_months: int = Field(..., gt=0, description="Loan term in months")
    repayment_type: RepaymentType = Field(
        default="annuity", description="Fixed total payment or fixed principal"
    )
    can_be_refinanced: bool = Field(
        default=False, description="Eligible for refinancing in projections"
    )
    interest_only_eligible: bool = Field(
        default=False, description="Eligible for interest-only treatment"
    )
    linked_asset_id: Optional[str] = Field(
        default=None, description="Asset this loan is secured against"
    )
    notes: Optional[str] = Field(default=None, description="Free-form notes")


class WithdrawalRates(BaseModel):
    """Annual passive-income rates per asset class, as percentages."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stock: float = Field(default=3.0, ge=0, description="Dividend/withdrawal rate")
    fund: float = Field(default=4.0, ge=0, description="Safe withdrawal rate")
    crypto: float = Field(default=2.0, ge=0, description="Conservative crypto rate")
    real_estate: float = Field(
        default=0.0,
        ge=0,
        alias="real-estate",
        description="Unused: real estate income comes from recorded rent",
    )

    def rate_for(self, kind: str) -> float:
        """Get the rate for an asset kind."""
        return {
            "stock": self.stock,
            "fund": self.fund,
            "crypto": self.crypto,
            "real-estate": self.real_estate,
        }[kind]


class HorizonSettings(BaseModel):
    """Configuration for horizon (income vs. obligations) projections."""

    model_config = ConfigDict(frozen=True)

    withdrawal_rates: WithdrawalRates = Field(
        default_factory=WithdrawalRates, description="Passive-income rates by class"
    )
    monthly_baseline_expense: float = Field(
        default=0, ge=0, description="Living expenses beyond loan payments"
    )
    interest_rate_override: Optional[float] = Field(
        default=None,
        ge=0,
        description="Rate applied to every liability for projections only",
    )
    rental_growth_rate: float = Field(
        default=0, description="Annual rental income growth as a percentage"
    )
    refinancing_enabled: bool = Field(
        default=False, description="Refinance eligible liabilities"
    )
    interest_only_enabled: bool = Field(
        default=False, description="Pay interest only on eligible liabilities"
    )


DEFAULT_HORIZON_SETTINGS = HorizonSettings()
