"""
Projection service for running the engine over request payloads.

This service validates incoming portfolio payloads into engine records and
runs the horizon, portfolio and liability reports, returning JSON-ready
dictionaries.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from finhorizon.models.amortization import AmortizationCalculator
from finhorizon.models.horizon import build_horizon_series, summarize
from finhorizon.models.portfolio import (
    allocation,
    equity_positions,
    growth_series,
    portfolio_projections,
    portfolio_summary,
    projection_breakdown,
)
from finhorizon.models.records import Asset, HorizonSettings, Liability
from finhorizon.models.time_grid import PROJECTION_YEARS, DateLike, resolve_as_of

logger = logging.getLogger(__name__)

# Yearly growth per class covers the longest standard horizon
GROWTH_SERIES_YEARS = PROJECTION_YEARS[-1]


class ProjectionRequest(BaseModel):
    """Inbound payload: the records to project and how to project them."""

    assets: List[Asset] = Field(default_factory=list, description="Asset records")
    liabilities: List[Liability] = Field(
        default_factory=list, description="Liability records"
    )
    settings: HorizonSettings = Field(
        default_factory=HorizonSettings, description="Horizon settings"
    )
    as_of: Optional[DateLike] = Field(
        default=None, description="Reference date or instant (defaults to today)"
    )
    max_years: Optional[int] = Field(
        default=None, ge=0, le=50, description="Last year of the horizon series"
    )


class ProjectionService:
    """Service for running projection reports."""

    def __init__(self, default_series_years: int = 30) -> None:
        """Initialize the projection service.

        Args:
            default_series_years: Series length used when a request omits it
        """
        self.default_series_years = default_series_years
        self.logger = logging.getLogger(__name__)

    def parse_request(self, payload: Dict[str, Any]) -> ProjectionRequest:
        """Validate a payload into a request.

        Raises:
            pydantic.ValidationError: If the payload violates record invariants
        """
        try:
            return ProjectionRequest.model_validate(payload)
        except ValidationError as e:
            self.logger.warning(
                f"Rejected projection payload with {e.error_count()} errors"
            )
            raise

    def horizon_summary(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run the horizon summary for a payload.

        Args:
            payload: Request payload

        Returns:
            Dictionary containing the summary
        """
        request = self.parse_request(payload)
        as_of = resolve_as_of(request.as_of)
        self.logger.info(
            f"Summarizing {len(request.assets)} assets and "
            f"{len(request.liabilities)} liabilities as of {as_of}"
        )

        summary = summarize(request.assets, request.liabilities, request.settings, as_of)
        return summary.model_dump(mode="json")

    def horizon_series(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build the horizon series for a payload.

        Args:
            payload: Request payload

        Returns:
            Dictionary containing the yearly points and the first crossover year
        """
        request = self.parse_request(payload)
        as_of = resolve_as_of(request.as_of)
        max_years = (
            request.max_years
            if request.max_years is not None
            else self.default_series_years
        )
        self.logger.info(f"Building {max_years}-year horizon series as of {as_of}")

        series = build_horizon_series(
            request.assets, request.liabilities, max_years, request.settings, as_of
        )
        crossover = series.first_crossover()
        return {
            "points": [point.model_dump(mode="json") for point in series.points],
            "first_crossover_year": crossover.year if crossover else None,
        }

    def portfolio_report(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build the portfolio report for a payload.

        Args:
            payload: Request payload

        Returns:
            Dictionary containing summary, projections, breakdown, current
            and future allocation, yearly growth per class and equity positions
        """
        request = self.parse_request(payload)
        as_of = resolve_as_of(request.as_of)
        assets = request.assets
        self.logger.info(f"Building portfolio report for {len(assets)} assets")

        return {
            "summary": portfolio_summary(assets, as_of).model_dump(mode="json"),
            "projections": [
                p.model_dump(mode="json")
                for p in portfolio_projections(assets, PROJECTION_YEARS, as_of)
            ],
            "breakdown": {
                str(year): projection_breakdown(assets, year, as_of).model_dump(
                    mode="json"
                )
                for year in PROJECTION_YEARS
            },
            "allocation": [
                s.model_dump(mode="json") for s in allocation(assets, 0, as_of)
            ],
            "future_allocation": {
                str(year): [
                    s.model_dump(mode="json") for s in allocation(assets, year, as_of)
                ]
                for year in PROJECTION_YEARS
            },
            "growth": [
                g.model_dump(mode="json")
                for g in growth_series(assets, GROWTH_SERIES_YEARS, as_of)
            ],
            "equity": [
                e.model_dump(mode="json")
                for e in equity_positions(assets, request.liabilities, as_of)
            ],
        }

    def liability_schedules(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build schedules and projections for every liability in a payload.

        The settings' interest rate override, when present, applies to the
        schedules.

        Args:
            payload: Request payload

        Returns:
            Dictionary containing one report per liability
        """
        request = self.parse_request(payload)
        as_of = resolve_as_of(request.as_of)
        rate_override = request.settings.interest_rate_override
        self.logger.info(
            f"Building schedules for {len(request.liabilities)} liabilities"
        )

        reports = []
        for liability in request.liabilities:
            schedule = AmortizationCalculator.build_schedule(liability, rate_override)
            reports.append(
                {
                    "liability_id": liability.id,
                    "current_payment": AmortizationCalculator.current_monthly_payment(
                        liability, as_of
                    ),
                    "current_balance": AmortizationCalculator.balance_at_date(
                        liability, as_of
                    ),
                    "schedule": [entry.model_dump(mode="json") for entry in schedule],
                    "projections": [
                        p.model_dump(mode="json")
                        for p in AmortizationCalculator.liability_projections(
                            liability, PROJECTION_YEARS, as_of
                        )
                    ],
                }
            )

        return {"liabilities": reports}
