# tests/conftest.py
import pytest
from datetime import date, timedelta

from auto_insights.types import Table


@pytest.fixture
def sales_table():
    """Twelve daily rows with a level shift, a perfect correlation and an imbalanced category"""
    start = date(2023, 1, 1)
    sales = [1] * 6 + [10] * 6
    rows = []
    for i in range(12):
        rows.append({
            'date': (start + timedelta(days=i)).isoformat(),
            'sales': str(sales[i]),
            'ad_spend': sales[i] * 2,
            'region': 'North' if i < 9 else 'South',
            'comment': None if i % 4 == 0 else f'ok {chr(97 + i)}',
        })
    return Table.from_records(rows)


@pytest.fixture
def mixed_table():
    """Small table mixing raw representations of the same values"""
    return Table.from_records([
        {'id': 1, 'amount': '10.5', 'city': 'Paris', 'joined': '2023-01-05'},
        {'id': 2, 'amount': 12, 'city': 'Lyon', 'joined': '2023-02-11'},
        {'id': 3, 'amount': '', 'city': 'Paris'},
        {'id': 4, 'amount': '7', 'city': None, 'joined': '2023-03-20'},
    ])
