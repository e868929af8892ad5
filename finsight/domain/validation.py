"""Input validation - rejects malformed snapshots before any computation runs"""

from datetime import date
from typing import Dict, List, Sequence

from finsight.domain.exceptions import InvalidInputError
from finsight.domain.models import EXPENSE, INCOME, Account, BudgetCategory, Transaction
from finsight.utils.math_utils import is_finite_number

# Target percentages may drift from 100 by rounding in the caller's UI
TARGET_SUM_TOLERANCE = 0.5


def validate_transactions(transactions: Sequence[Transaction]) -> None:
    """
    Check every transaction before aggregation.

    Raises:
        InvalidInputError: on a non-date `date`, a NaN/infinite amount, an empty
        category or an unknown type tag. The message names the offending index.
    """
    for index, txn in enumerate(transactions):
        if not isinstance(txn.date, date):
            raise InvalidInputError(f"transactions[{index}]: date must be a date, got {txn.date!r}")
        if not is_finite_number(txn.amount):
            raise InvalidInputError(f"transactions[{index}]: amount must be a finite number, got {txn.amount!r}")
        if not isinstance(txn.category, str) or not txn.category.strip():
            raise InvalidInputError(f"transactions[{index}]: category must be a non-empty string")
        if txn.type not in (None, INCOME, EXPENSE):
            raise InvalidInputError(f"transactions[{index}]: type must be 'income' or 'expense', got {txn.type!r}")


def validate_budgets(budgets: Sequence[BudgetCategory]) -> None:
    seen = set()
    for index, budget in enumerate(budgets):
        if not isinstance(budget.name, str) or not budget.name.strip():
            raise InvalidInputError(f"budgets[{index}]: name must be a non-empty string")
        key = budget.name.strip().casefold()
        if key in seen:
            raise InvalidInputError(f"budgets[{index}]: duplicate category {budget.name!r}")
        seen.add(key)
        if not is_finite_number(budget.current_budget) or budget.current_budget < 0:
            raise InvalidInputError(
                f"budgets[{index}]: current_budget must be a non-negative number, got {budget.current_budget!r}"
            )
        if budget.current_spending is not None and (
            not is_finite_number(budget.current_spending) or budget.current_spending < 0
        ):
            raise InvalidInputError(
                f"budgets[{index}]: current_spending must be a non-negative number, got {budget.current_spending!r}"
            )


def validate_accounts(accounts: Sequence[Account]) -> None:
    for index, account in enumerate(accounts):
        if not isinstance(account.asset_class, str) or not account.asset_class.strip():
            raise InvalidInputError(f"accounts[{index}]: asset_class must be a non-empty string")
        if not is_finite_number(account.balance) or account.balance < 0:
            raise InvalidInputError(
                f"accounts[{index}]: balance must be a non-negative number, got {account.balance!r}"
            )


def validate_target_allocation(target_allocation: Dict[str, float]) -> None:
    """Each target must lie in [0, 100] and a non-empty allocation must sum to 100"""
    seen = set()
    for asset_class, pct in target_allocation.items():
        if not isinstance(asset_class, str) or not asset_class.strip():
            raise InvalidInputError("target_allocation: asset class names must be non-empty strings")
        key = asset_class.strip().casefold()
        if key in seen:
            raise InvalidInputError(f"target_allocation: duplicate asset class {asset_class!r}")
        seen.add(key)
        if not is_finite_number(pct) or pct < 0 or pct > 100:
            raise InvalidInputError(f"target_allocation[{asset_class!r}] must be between 0 and 100, got {pct!r}")

    total = sum(target_allocation.values())
    if target_allocation and abs(total - 100) > TARGET_SUM_TOLERANCE:
        raise InvalidInputError(f"target_allocation must sum to 100, got {total:g}")


def validate_returns(series: Dict[str, List[float]], name: str = "historical_returns") -> None:
    for key, returns in series.items():
        for index, value in enumerate(returns):
            if not is_finite_number(value):
                raise InvalidInputError(f"{name}[{key!r}][{index}] must be a finite number, got {value!r}")
            if value <= -1:
                raise InvalidInputError(f"{name}[{key!r}][{index}] cannot lose more than 100%, got {value!r}")
