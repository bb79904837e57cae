# tests/test_quality.py
import pytest

from auto_insights.stats.quality import category_imbalance, duplicate_rows
from auto_insights.types import Table


class TestDuplicateRows:

    def test_counts_repeats_only(self):
        table = Table.from_records([{'a': 1}, {'a': 1}, {'a': 2}, {'a': 1}])
        assert duplicate_rows(table) == 2

    def test_compares_coerced_values(self):
        table = Table.from_records([{'a': '1', 'b': 'x'}, {'a': 1, 'b': 'x'}, {'a': 1.0, 'b': 'y'}])
        assert duplicate_rows(table) == 1

    def test_absent_key_equals_missing(self):
        table = Table.from_records([{'a': 1, 'b': None}, {'a': 1}, {'a': 1, 'b': ''}])
        assert duplicate_rows(table) == 2

    def test_no_duplicates(self, sales_table):
        assert duplicate_rows(sales_table) == 0


class TestCategoryImbalance:

    def test_dominant_value(self):
        table = Table.from_records([{'c': v} for v in ['x', 'x', 'x', 'y']])
        imb = category_imbalance(table)

        assert imb.column == 'c'
        assert imb.top_category == 'x'
        assert imb.top_count == 3
        assert imb.top_share == pytest.approx(75.0)

    def test_tie_goes_to_first_seen(self):
        table = Table.from_records([{'c': v} for v in ['y', 'x', 'x', 'y']])
        assert category_imbalance(table).top_category == 'y'

    def test_share_counts_all_rows(self):
        table = Table.from_records([{'c': v} for v in ['x', 'x', 'y', None]])
        assert category_imbalance(table).top_share == pytest.approx(50.0)

    def test_first_string_column_used(self, sales_table):
        imb = category_imbalance(sales_table)
        assert imb.column == 'region'
        assert imb.top_category == 'North'

    def test_no_string_column(self):
        table = Table.from_records([{'n': i} for i in range(5)])
        assert category_imbalance(table) is None
