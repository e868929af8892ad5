"""Unit tests for input validation and date helpers"""

import pytest
from datetime import date
from finsight.domain.exceptions import InsufficientHistoryError, InvalidInputError
from finsight.domain.models import Account, Transaction
from finsight.domain.validation import (
    validate_accounts,
    validate_returns,
    validate_target_allocation,
    validate_transactions,
)
from finsight.utils.date_utils import add_months, generate_month_range, months_between


def test_transaction_errors_name_the_index():
    transactions = [
        Transaction(date(2024, 1, 1), 10.0, "Salary"),
        Transaction(date(2024, 1, 2), 5.0, "   "),
    ]

    with pytest.raises(InvalidInputError, match=r"transactions\[1\]"):
        validate_transactions(transactions)


def test_boolean_amount_is_rejected():
    with pytest.raises(InvalidInputError):
        validate_transactions([Transaction(date(2024, 1, 1), True, "Salary")])


def test_unknown_type_tag_is_rejected():
    with pytest.raises(InvalidInputError):
        validate_transactions([Transaction(date(2024, 1, 1), 10.0, "Salary", type="transfer")])


def test_target_allocation_tolerates_rounding():
    validate_target_allocation({"Stocks": 33.3, "Bonds": 33.3, "Cash": 33.3})
    validate_target_allocation({})

    with pytest.raises(InvalidInputError):
        validate_target_allocation({"Stocks": 98.0})


def test_target_allocation_rejects_case_only_duplicates():
    with pytest.raises(InvalidInputError, match="duplicate"):
        validate_target_allocation({"Stocks": 50.0, " stocks": 50.0})


def test_accounts_need_an_asset_class():
    with pytest.raises(InvalidInputError):
        validate_accounts([Account("Brokerage", "", 100.0)])


def test_returns_must_be_finite():
    validate_returns({"Stocks": [0.01, -0.5]})

    with pytest.raises(InvalidInputError, match="benchmark_returns"):
        validate_returns({"benchmark": [float("inf")]}, name="benchmark_returns")


def test_insufficient_history_message():
    error = InsufficientHistoryError(1, 2)

    assert error.months_available == 1
    assert error.months_required == 2
    assert "1" in str(error)


def test_month_arithmetic():
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)
    assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert months_between(date(2023, 12, 20), date(2024, 2, 1)) == 2
    assert generate_month_range(date(2024, 2, 14), 3) == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]
