"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Dict, List
from fastapi.testclient import TestClient
from finsight.api.main import create_app
from finsight.domain.models import Account, Transaction


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def steady_transactions() -> list[Transaction]:
    """Six months (Jan-Jun 2024) of $5000 salary and $4000 rent"""
    transactions = []
    for month in range(1, 7):
        transactions.append(
            Transaction(
                date=date(2024, month, 1),
                amount=5000.0,
                category="Salary",
                description="Employer payroll",
            )
        )
        transactions.append(
            Transaction(
                date=date(2024, month, 5),
                amount=-4000.0,
                category="Housing",
                description="Rent",
            )
        )
    return transactions


@pytest.fixture
def steady_transactions_payload(steady_transactions: list[Transaction]) -> List[Dict]:
    """Same history as steady_transactions, as JSON request items"""
    return [
        {
            "date": t.date.isoformat(),
            "amount": t.amount,
            "category": t.category,
            "description": t.description,
        }
        for t in steady_transactions
    ]


@pytest.fixture
def balanced_accounts() -> list[Account]:
    """$100k split 60/30/10 across stocks, bonds and cash"""
    return [
        Account(name="Brokerage", asset_class="Stocks", balance=60_000.0),
        Account(name="Bond fund", asset_class="Bonds", balance=30_000.0),
        Account(name="Savings", asset_class="Cash", balance=10_000.0),
    ]
