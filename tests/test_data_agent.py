# tests/test_data_agent.py
import json
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from auto_insights.agents.data_agent import (
    DataIngestionAgent,
    fetch_json_records,
    records_from_json,
    validate_table,
)
from auto_insights.config import IngestionConfig
from auto_insights.types import CellKind, Table, TableValidationError


class TestDataIngestionAgent:

    @pytest.fixture
    def sample_data(self):
        """Small dataset with a missing amount and a missing city"""
        return pd.DataFrame({
            'order_date': ['2023-01-01', '2023-01-02', '2023-01-03', '2023-01-04'],
            'amount': ['10', '12.5', '', '8'],
            'city': ['Paris', 'Lyon', 'Paris', ''],
        })

    @pytest.fixture
    def temp_csv_file(self, sample_data, tmp_path):
        path = tmp_path / 'orders.csv'
        sample_data.to_csv(path, index=False)
        return str(path)

    @pytest.fixture
    def temp_json_file(self, tmp_path):
        path = tmp_path / 'orders.json'
        path.write_text(json.dumps({'meta': {'page': 1}, 'data': [{'a': 1}, {'a': 2, 'b': 'x'}]}))
        return str(path)

    def test_data_loading_success(self, temp_csv_file):
        agent = DataIngestionAgent()
        state = {'data_path': temp_csv_file, 'execution_log': []}

        result = agent.process(state)

        assert isinstance(result['table'], Table)
        assert result['table'].columns == ['order_date', 'amount', 'city']
        assert len(result['table']) == 4
        assert result['current_step'] == 'data_ingestion'
        assert result['next_action'] == 'data_validation'

    def test_csv_cells_stay_text(self, temp_csv_file):
        table = DataIngestionAgent().load_file(temp_csv_file)
        assert table.rows[0]['amount'] == '10'
        assert table.rows[2]['amount'] == ''

    def test_json_loading(self, temp_json_file):
        table = DataIngestionAgent().load_file(temp_json_file)
        assert table.columns == ['a', 'b']
        assert len(table) == 2

    def test_records_in_state(self):
        result = DataIngestionAgent().process({'records': [{'x': 1}, {'x': 2}]})
        assert len(result['table']) == 2
        assert result['data_info']['shape'] == (2, 1)

    def test_data_loading_file_not_found(self):
        agent = DataIngestionAgent()
        state = {'data_path': 'non_existent_file.csv', 'execution_log': [], 'errors': []}

        result = agent.process(state)

        assert len(result['errors']) > 0
        assert result['next_action'] == 'error'

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / 'orders.parquet'
        path.write_text('x')

        result = DataIngestionAgent().process({'data_path': str(path)})
        assert 'Unsupported file format' in result['errors'][0]

    def test_file_size_limit(self, temp_csv_file):
        agent = DataIngestionAgent(IngestionConfig(MAX_FILE_SIZE_MB=0))
        result = agent.process({'data_path': temp_csv_file})
        assert 'File too large' in result['errors'][0]

    def test_validation_success(self, sample_data):
        agent = DataIngestionAgent()
        state = {'table': Table.from_dataframe(sample_data), 'execution_log': []}

        result = agent.validate(state)

        assert result['current_step'] == 'data_validation'
        assert result['next_action'] == 'proceed'
        assert result['coerced_table'].rows[0]['amount'].kind is CellKind.NUMBER

    def test_validation_failure(self):
        result = DataIngestionAgent().validate({'table': Table(columns=['a'], rows=[])})

        assert result['next_action'] == 'error'
        assert 'no rows' in result['errors'][0]

    def test_data_info_extraction(self, sample_data):
        info = DataIngestionAgent()._extract_data_info(Table.from_dataframe(sample_data))

        assert info['shape'] == sample_data.shape
        assert info['columns'] == list(sample_data.columns)
        assert info['missing_values'] == {'order_date': 0, 'amount': 1, 'city': 1}


class TestRecordExtraction:

    def test_plain_list(self):
        assert records_from_json([{'a': 1}, 5]) == [{'a': 1}, {'value': 5}]

    def test_container_key(self):
        assert records_from_json({'results': [{'a': 1}]}) == [{'a': 1}]

    def test_dotted_path(self):
        document = {'payload': {'rows': [{'a': 1}, {'a': 2}]}}
        assert records_from_json(document, 'payload.rows') == [{'a': 1}, {'a': 2}]

    def test_single_object(self):
        assert records_from_json({'a': 1, 'b': 2}) == [{'a': 1, 'b': 2}]

    def test_scalar(self):
        assert records_from_json(3) == [{'value': 3}]

    def test_fetch(self):
        response = MagicMock()
        response.json.return_value = {'items': [{'a': 1}]}
        with patch('auto_insights.agents.data_agent.requests.get', return_value=response) as get:
            records = fetch_json_records('https://example.test/orders', timeout=5)

        assert records == [{'a': 1}]
        assert get.call_args.kwargs['timeout'] == 5


class TestValidateTable:

    def test_rejects_empty(self):
        with pytest.raises(TableValidationError):
            validate_table(Table(columns=['a'], rows=[]))

    def test_rejects_non_mapping_rows(self):
        with pytest.raises(TableValidationError):
            validate_table(Table(columns=['a'], rows=[{'a': 1}, ['a', 1]]))

    def test_rejects_duplicate_columns(self):
        with pytest.raises(TableValidationError):
            validate_table(Table(columns=['a', 'a'], rows=[{'a': 1}]))

    def test_from_records_rejects_non_mapping(self):
        with pytest.raises(TableValidationError):
            Table.from_records([{'a': 1}, 'oops'])
