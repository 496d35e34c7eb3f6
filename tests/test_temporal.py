from datetime import date

from library_api.core.temporal import add_months, effective_duration, filter_loans, matches


def test_loan_spans_date(closed_loan):
    assert matches(closed_loan, on=date(2023, 2, 1))
    assert not matches(closed_loan, on=date(2023, 4, 1))
    assert not matches(closed_loan, on=date(2023, 1, 9))


def test_boundaries_are_inclusive(closed_loan):
    assert matches(closed_loan, on=date(2023, 1, 10))
    assert matches(closed_loan, on=date(2023, 3, 15))


def test_no_filters_match_everything(closed_loan, loan_factory):
    assert matches(closed_loan)
    assert matches(loan_factory(date(2030, 1, 1)))


def test_month_span_with_date(closed_loan):
    assert matches(closed_loan, on=date(2023, 2, 15), month_span=True)


def test_month_span_rejects_short_loan(loan_factory):
    loan = loan_factory(date(2023, 1, 10), date(2023, 1, 20))
    assert matches(loan, on=date(2023, 1, 15))
    assert not matches(loan, on=date(2023, 1, 15), month_span=True)


def test_month_span_uses_calendar_months(loan_factory):
    loan = loan_factory(date(2023, 1, 31))
    # Jan 31 plus one month is Feb 28 in 2023
    assert not matches(loan, on=date(2023, 2, 27), month_span=True)
    assert matches(loan, on=date(2023, 2, 28), month_span=True)

    february = loan_factory(date(2023, 2, 1))
    assert not matches(february, on=date(2023, 2, 28), month_span=True)
    assert matches(february, on=date(2023, 3, 1), month_span=True)


def test_month_span_defaults_to_today(loan_factory):
    today = date(2023, 3, 1)
    assert matches(loan_factory(date(2023, 1, 1)), month_span=True, today=today)
    assert not matches(loan_factory(date(2023, 2, 20)), month_span=True, today=today)
    assert not matches(loan_factory(date(2023, 1, 1), date(2023, 2, 1)), month_span=True, today=today)


def test_add_months():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 12, 15), 1) == date(2024, 1, 15)
    assert add_months(date(2023, 3, 31), 1) == date(2023, 4, 30)


def test_effective_duration(closed_loan, loan_factory):
    assert effective_duration(closed_loan, date(2023, 2, 1)) == 64
    assert effective_duration(loan_factory(date(2023, 1, 10)), date(2023, 2, 15)) == 36


def test_current_loans(closed_loan, loan_factory):
    out = loan_factory(date(2023, 2, 1))
    assert filter_loans([closed_loan, out], active_only=True) == [out]
    assert filter_loans([closed_loan, out], on=date(2023, 2, 10)) == [closed_loan, out]
    assert filter_loans([closed_loan, out], on=date(2023, 1, 20)) == [closed_loan]
