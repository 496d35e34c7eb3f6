from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from library_api.core.temporal import effective_duration, spans


@dataclass
class ReportRow:
    key: int
    on: date
    loans: list = field(default_factory=list)

    @property
    def loan_count(self) -> int:
        return len(self.loans)

    @property
    def total_duration_days(self) -> int:
        return sum(effective_duration(loan, self.on) for loan in self.loans)

    @property
    def average_duration_days(self) -> float:
        if not self.loans:
            return 0.0
        return self.total_duration_days / self.loan_count


def aggregate(loans: Iterable, loan_date: Optional[date] = None, duration: Optional[int] = None,
              today: Optional[date] = None) -> Tuple[Dict[int, ReportRow], Dict[int, ReportRow]]:
    """Group the loans out on ``loan_date`` by user and by book.

    ``duration`` (days) keeps only loans whose effective duration reaches it.
    """
    on = loan_date or today or date.today()
    per_user: Dict[int, ReportRow] = {}
    per_book: Dict[int, ReportRow] = {}
    for loan in loans:
        if not spans(loan, on):
            continue
        if duration is not None and effective_duration(loan, on) < duration:
            continue
        per_user.setdefault(loan.user_id, ReportRow(loan.user_id, on)).loans.append(loan)
        per_book.setdefault(loan.book_id, ReportRow(loan.book_id, on)).loans.append(loan)
    return per_user, per_book
