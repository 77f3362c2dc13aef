from __future__ import annotations

from datetime import date

import pytest

from billing_core.core.exceptions import ValidationError
from billing_core.utils.periods import (
    days_in_month,
    default_billing_day,
    due_date_for,
    is_valid_billing_day,
    next_reference_month,
    parse_reference_month,
    previous_reference_month,
    reference_month_of,
)


def test_due_date_clamps_to_last_day_of_month():
    assert due_date_for("2024-02", 31) == date(2024, 2, 29)
    assert due_date_for("2023-02", 30) == date(2023, 2, 28)
    assert due_date_for("2024-04", 31) == date(2024, 4, 30)
    assert due_date_for("2024-03", 10) == date(2024, 3, 10)


def test_reference_month_rolls_over_year_boundary():
    assert next_reference_month("2024-12") == "2025-01"
    assert previous_reference_month("2025-01") == "2024-12"
    assert next_reference_month("2024-06") == "2024-07"


@pytest.mark.parametrize("value", ["2024-13", "2024-1", "24-01", "", "2024/01"])
def test_parse_reference_month_rejects_malformed_values(value):
    with pytest.raises(ValidationError):
        parse_reference_month(value)


def test_reference_month_helpers():
    assert parse_reference_month("2024-02") == (2024, 2)
    assert reference_month_of(date(2024, 2, 29)) == "2024-02"
    assert days_in_month("2024-02") == 29


def test_default_billing_day_caps_at_28():
    assert default_billing_day(date(2024, 1, 10)) == 10
    assert default_billing_day(date(2024, 1, 31)) == 28
    assert is_valid_billing_day(28) is True
    assert is_valid_billing_day(29) is False
    assert is_valid_billing_day(0) is False
