"""Date-range checks for loans.

A loan is anything with ``loan_date`` and an optional ``return_date``.
"""
import calendar
from datetime import date
from typing import Iterable, Optional


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def is_active(loan) -> bool:
    return loan.return_date is None


def spans(loan, on: date) -> bool:
    return loan.loan_date <= on and (loan.return_date is None or loan.return_date >= on)


def effective_end(loan, on: date) -> date:
    return loan.return_date if loan.return_date is not None else on


def effective_duration(loan, on: date) -> int:
    """Days from the loan date to its return date, or to ``on`` while still out."""
    return (effective_end(loan, on) - loan.loan_date).days


def matches(loan, on: Optional[date] = None, month_span: Optional[bool] = None,
            today: Optional[date] = None) -> bool:
    if month_span and on is None:
        on = today or date.today()
    if on is not None and not spans(loan, on):
        return False
    if month_span:
        return effective_end(loan, on) >= add_months(loan.loan_date, 1)
    return True


def filter_loans(loans: Iterable, on: Optional[date] = None, month_span: Optional[bool] = None,
                 active_only: bool = False, today: Optional[date] = None) -> list:
    return [
        loan for loan in loans
        if (not active_only or is_active(loan)) and matches(loan, on, month_span, today)
    ]
