"""
Liability amortization calculations.

This module generates payment schedules for fixed-payment (annuity) and
fixed-principal (serial) loans, locates a loan's balance and payment at any
offset from a reference date, and models refinancing and interest-only
treatment for projections.
"""

import logging
import math
from datetime import date
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .records import Liability
from .time_grid import (
    PROJECTION_YEARS,
    loan_months_elapsed,
    resolve_as_of,
    round_currency,
)

logger = logging.getLogger(__name__)

# Refinanced loans restart on a fresh 30-year term
REFINANCING_TERM_MONTHS = 360

# (payment, principal_portion, interest_portion, remaining_balance)
ScheduleRow = Tuple[float, float, float, float]


class ScheduleEntry(BaseModel):
    """A single period of an amortization schedule."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, description="Payment number (1-based)")
    payment: float = Field(..., ge=0, description="Total payment for the period")
    principal_portion: float = Field(..., description="Principal portion of payment")
    interest_portion: float = Field(..., description="Interest portion of payment")
    remaining_balance: float = Field(
        ..., ge=0, description="Balance after this payment"
    )


class PaymentSplit(BaseModel):
    """Monthly payment split into interest and principal."""

    model_config = ConfigDict(frozen=True)

    total: float = Field(default=0.0, description="Total monthly payment")
    interest: float = Field(default=0.0, description="Interest portion")
    principal: float = Field(default=0.0, description="Principal portion")

    @classmethod
    def from_row(cls, row: "ScheduleRow") -> "PaymentSplit":
        payment, principal, interest, _ = row
        return cls(total=payment, interest=interest, principal=principal)

    def __add__(self, other: "PaymentSplit") -> "PaymentSplit":
        return PaymentSplit(
            total=self.total + other.total,
            interest=self.interest + other.interest,
            principal=self.principal + other.principal,
        )


class LiabilityProjection(BaseModel):
    """Position of a loan a number of years from now."""

    year: int = Field(..., ge=0, description="Years from now")
    remaining_balance: float = Field(..., ge=0, description="Balance at that point")
    total_principal_paid: float = Field(
        ..., ge=0, description="Principal repaid since the loan started"
    )
    total_interest_paid: float = Field(
        ..., ge=0, description="Interest paid since the loan started"
    )


def effective_rate(liability: Liability, rate_override: Optional[float] = None) -> float:
    """Annual rate used for projections: the override if given, else the loan's own."""
    if rate_override is not None:
        return rate_override
    return liability.annual_interest_rate


class AmortizationCalculator:
    """Calculator for loan amortization and related projections."""

    @staticmethod
    def fixed_payment(
        principal: float, annual_rate_pct: float, term_months: int
    ) -> float:
        """
        Calculate the monthly payment of an annuity loan.

        PMT = P × r(1 + r)^n / ((1 + r)^n - 1) with r the monthly rate.

        Args:
            principal: Loan principal amount
            annual_rate_pct: Annual interest rate as a percentage
            term_months: Number of monthly payments

        Returns:
            Monthly payment amount (0 for a non-positive term)
        """
        if term_months <= 0:
            return 0.0
        if annual_rate_pct == 0:
            return principal / term_months

        monthly_rate = annual_rate_pct / 100 / 12
        growth = (1 + monthly_rate) ** term_months
        return principal * (monthly_rate * growth) / (growth - 1)

    @staticmethod
    def fixed_principal_portion(principal: float, term_months: int) -> float:
        """
        Calculate the constant monthly principal of a serial loan.

        Args:
            principal: Loan principal amount
            term_months: Number of monthly payments

        Returns:
            Principal repaid each month (0 for a non-positive term)
        """
        if term_months <= 0:
            return 0.0
        return principal / term_months

    @staticmethod
    def build_schedule(
        liability: Liability, rate_override: Optional[float] = None
    ) -> List[ScheduleEntry]:
        """
        Generate the full amortization schedule for a liability.

        Args:
            liability: The loan
            rate_override: Annual rate to use instead of the loan's own rate

        Returns:
            One entry per month of the term

        Raises:
            ValueError: If the liability has a non-positive principal or term
        """
        return [
            ScheduleEntry(
                month=month,
                payment=payment,
                principal_portion=principal,
                interest_portion=interest,
                remaining_balance=balance,
            )
            for month, (payment, principal, interest, balance) in enumerate(
                AmortizationCalculator._schedule_rows(liability, rate_override),
                start=1,
            )
        ]

    @staticmethod
    def _schedule_rows(
        liability: Liability,
        rate_override: Optional[float] = None,
        months: Optional[int] = None,
    ) -> List[ScheduleRow]:
        """
        Compute the first ``months`` schedule periods as plain tuples.

        Balance and payment lookups run once per liability per projected
        month, so they read these rows instead of building entry models.

        Args:
            liability: The loan
            rate_override: Annual rate to use instead of the loan's own rate
            months: Number of periods to compute (defaults to the full term)

        Returns:
            ``(payment, principal, interest, remaining_balance)`` per period

        Raises:
            ValueError: If the liability has a non-positive principal or term
        """
        if liability.principal <= 0 or liability.term_months <= 0:
            raise ValueError(
                f"Liability {liability.id} needs a positive principal and term "
                "to build a schedule"
            )

        term = liability.term_months
        periods = term if months is None else max(0, min(months, term))
        rate = effective_rate(liability, rate_override)
        monthly_rate = rate / 100 / 12
        balance = liability.principal
        rows: List[ScheduleRow] = []

        if liability.repayment_type == "annuity":
            monthly_payment = AmortizationCalculator.fixed_payment(
                liability.principal, rate, term
            )
            for month in range(1, periods + 1):
                interest = balance * monthly_rate
                principal = monthly_payment - interest
                balance = AmortizationCalculator._next_balance(
                    balance, principal, month, term
                )
                rows.append((monthly_payment, principal, interest, balance))
        else:
            monthly_principal = AmortizationCalculator.fixed_principal_portion(
                liability.principal, term
            )
            for month in range(1, periods + 1):
                interest = balance * monthly_rate
                balance = AmortizationCalculator._next_balance(
                    balance, monthly_principal, month, term
                )
                rows.append(
                    (monthly_principal + interest, monthly_principal, interest, balance)
                )

        return rows

    @staticmethod
    def _next_balance(
        balance: float, principal: float, month: int, term_months: int
    ) -> float:
        # Floored at zero; the final period closes out any floating-point drift
        if month >= term_months:
            return 0.0
        return max(0.0, balance - principal)

    @staticmethod
    def balance_after_payments(
        liability: Liability,
        payments_made: int,
        rate_override: Optional[float] = None,
    ) -> float:
        """
        Get the remaining balance after a number of scheduled payments.

        Args:
            liability: The loan
            payments_made: Number of monthly payments made
            rate_override: Annual rate to use instead of the loan's own rate

        Returns:
            Full principal when no payment has been made, 0 once the term
            has elapsed, otherwise the scheduled balance
        """
        if payments_made <= 0:
            return liability.principal
        if payments_made >= liability.term_months:
            return 0.0

        rows = AmortizationCalculator._schedule_rows(
            liability, rate_override, payments_made
        )
        return rows[-1][3]

    @staticmethod
    def balance_at_date(
        liability: Liability,
        target_date: date,
        rate_override: Optional[float] = None,
    ) -> float:
        """Get the remaining balance of a loan on a given date."""
        payments_made = loan_months_elapsed(liability.start_date, target_date)
        return AmortizationCalculator.balance_after_payments(
            liability, payments_made, rate_override
        )

    @staticmethod
    def balance_at_month(
        liability: Liability,
        months_from_now: int,
        rate_override: Optional[float] = None,
        as_of: Optional[date] = None,
    ) -> float:
        """
        Get the remaining balance a number of months after ``as_of``.

        Args:
            liability: The loan
            months_from_now: Offset in months from ``as_of``
            rate_override: Annual rate to use instead of the loan's own rate
            as_of: Reference date (defaults to today)

        Returns:
            Remaining balance at the offset
        """
        elapsed = loan_months_elapsed(liability.start_date, resolve_as_of(as_of))
        return AmortizationCalculator.balance_after_payments(
            liability, elapsed + months_from_now, rate_override
        )

    @staticmethod
    def balance_after_years(
        liability: Liability,
        years: float,
        rate_override: Optional[float] = None,
        as_of: Optional[date] = None,
    ) -> float:
        """Get the remaining balance ``years`` after ``as_of``."""
        return AmortizationCalculator.balance_at_month(
            liability, math.floor(years * 12), rate_override, as_of
        )

    @staticmethod
    def refinanced_payment(
        liability: Liability,
        months_from_now: int,
        rate_override: Optional[float] = None,
        as_of: Optional[date] = None,
    ) -> PaymentSplit:
        """
        Calculate the payment after refinancing the remaining balance.

        The balance remaining at ``months_from_now`` is amortized afresh over
        ``REFINANCING_TERM_MONTHS`` at the effective rate. The original
        schedule plays no further part.

        Args:
            liability: The loan
            months_from_now: Offset in months from ``as_of``
            rate_override: Annual rate to use instead of the loan's own rate
            as_of: Reference date (defaults to today)

        Returns:
            Payment split for the first month of the refinanced loan
        """
        rate = effective_rate(liability, rate_override)
        remaining_balance = AmortizationCalculator.balance_at_month(
            liability, months_from_now, rate_override, as_of
        )
        if remaining_balance <= 0:
            return PaymentSplit()

        monthly_payment = AmortizationCalculator.fixed_payment(
            remaining_balance, rate, REFINANCING_TERM_MONTHS
        )
        interest = remaining_balance * rate / 100 / 12
        return PaymentSplit(
            total=monthly_payment,
            interest=interest,
            principal=monthly_payment - interest,
        )

    @staticmethod
    def interest_only_payment(
        liability: Liability,
        rate_override: Optional[float] = None,
        as_of: Optional[date] = None,
    ) -> PaymentSplit:
        """
        Calculate an interest-only payment.

        The balance stays at its value on ``as_of``, so the payment is the
        same for every future month and nothing is repaid.

        Args:
            liability: The loan
            rate_override: Annual rate to use instead of the loan's own rate
            as_of: Reference date (defaults to today)

        Returns:
            Payment split with a zero principal portion
        """
        balance = AmortizationCalculator.balance_at_month(
            liability, 0, rate_override, as_of
        )
        if balance <= 0:
            return PaymentSplit()

        interest = balance * effective_rate(liability, rate_override) / 100 / 12
        return PaymentSplit(total=interest, interest=interest, principal=0.0)

    @staticmethod
    def payment_at(
        liability: Liability,
        months_from_now: int,
        rate_override: Optional[float] = None,
        use_refinancing: bool = False,
        as_of: Optional[date] = None,
        use_interest_only: bool = False,
    ) -> PaymentSplit:
        """
        Get the monthly payment of a loan a number of months after ``as_of``.

        Interest-only treatment takes precedence over refinancing; each only
        applies to liabilities flagged as eligible.

        Args:
            liability: The loan
            months_from_now: Offset in months from ``as_of``
            rate_override: Annual rate to use instead of the loan's own rate
            use_refinancing: Refinance eligible loans
            as_of: Reference date (defaults to today)
            use_interest_only: Pay only interest on eligible loans

        Returns:
            Payment split; zero once the term has elapsed and the first
            scheduled payment before the loan starts
        """
        if use_interest_only and liability.interest_only_eligible:
            return AmortizationCalculator.interest_only_payment(
                liability, rate_override, as_of
            )

        if use_refinancing and liability.can_be_refinanced:
            logger.debug(
                f"Refinancing liability {liability.id} at month offset {months_from_now}"
            )
            return AmortizationCalculator.refinanced_payment(
                liability, months_from_now, rate_override, as_of
            )

        elapsed = loan_months_elapsed(liability.start_date, resolve_as_of(as_of))
        target_month = elapsed + months_from_now

        if target_month >= liability.term_months:
            return PaymentSplit()

        target_month = max(0, target_month)
        rows = AmortizationCalculator._schedule_rows(
            liability, rate_override, target_month + 1
        )
        return PaymentSplit.from_row(rows[target_month])

    @staticmethod
    def current_monthly_payment(
        liability: Liability, as_of: Optional[date] = None
    ) -> float:
        """Total payment due this month under the loan's own schedule."""
        return AmortizationCalculator.payment_at(liability, 0, as_of=as_of).total

    @staticmethod
    def current_principal_installment(
        liability: Liability, as_of: Optional[date] = None
    ) -> float:
        """Principal repaid this month under the loan's own schedule."""
        return AmortizationCalculator.payment_at(liability, 0, as_of=as_of).principal

    @staticmethod
    def liability_projections(
        liability: Liability,
        years: Sequence[int] = PROJECTION_YEARS,
        as_of: Optional[date] = None,
    ) -> List[LiabilityProjection]:
        """
        Project a loan's balance and cumulative repayments.

        Args:
            liability: The loan
            years: Horizons in years from ``as_of``
            as_of: Reference date (defaults to today)

        Returns:
            One projection per horizon
        """
        rows = AmortizationCalculator._schedule_rows(liability)
        elapsed = loan_months_elapsed(liability.start_date, resolve_as_of(as_of))

        projections = []
        for year in years:
            target_month = elapsed + year * 12
            paid = rows[: max(0, target_month)]
            projections.append(
                LiabilityProjection(
                    year=year,
                    remaining_balance=round_currency(
                        AmortizationCalculator.balance_after_payments(
                            liability, target_month
                        )
                    ),
                    total_principal_paid=round_currency(
                        sum(row[1] for row in paid)
                    ),
                    total_interest_paid=round_currency(
                        sum(row[2] for row in paid)
                    ),
                )
            )

        return projections
