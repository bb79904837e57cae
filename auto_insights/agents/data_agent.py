# auto_insights/agents/data_agent.py
import pandas as pd
from typing import Any, Dict, List, Mapping, Optional
import json
import logging
from pathlib import Path

import requests

from auto_insights.config import IngestionConfig
from auto_insights.stats.coercion import coerce_table
from auto_insights.types import Table, TableValidationError
from auto_insights.utils.logging_config import log_execution_time

logger = logging.getLogger(__name__)

# Wrapper keys searched for a record array when no path is given
RECORD_CONTAINER_KEYS = ['data', 'items', 'results', 'records']

def _get_by_path(document: Any, path: str) -> Any:
    current = document
    for key in path.split('.'):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current

def _as_rows(items: List[Any]) -> List[Dict[str, Any]]:
    return [x if isinstance(x, dict) else {'value': x} for x in items]

def records_from_json(document: Any, records_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Pick the row records out of a parsed JSON document"""
    picked = _get_by_path(document, records_path) if records_path else document

    if isinstance(picked, list):
        return _as_rows(picked)

    if isinstance(picked, dict):
        if not records_path:
            for key in RECORD_CONTAINER_KEYS:
                if isinstance(picked.get(key), list):
                    return _as_rows(picked[key])
        # Single object becomes a one-row table
        return [picked]

    return [{'value': picked}]

def fetch_json_records(url: str, records_path: Optional[str] = None, timeout: int = 30) -> List[Dict[str, Any]]:
    """Fetch a remote JSON document and extract its records"""
    response = requests.get(url, timeout=timeout, headers={'Accept': 'application/json'})
    response.raise_for_status()
    return records_from_json(response.json(), records_path)

def validate_table(table: Table) -> None:
    """Reject tables the analysis cannot accept"""
    if len(table.rows) == 0:
        raise TableValidationError("Table has no rows")
    for i, row in enumerate(table.rows):
        if not isinstance(row, Mapping):
            raise TableValidationError(f"Row {i} is not a mapping")
    if len(set(table.columns)) != len(table.columns):
        raise TableValidationError("Column names must be unique")

class DataIngestionAgent:
    """Agent responsible for loading a table and validating its shape"""

    def __init__(self, config: Optional[IngestionConfig] = None):
        self.config = config or IngestionConfig()

    def process(self, state: dict) -> dict:
        """Pipeline node: build the table from a path, records or a ready table"""
        try:
            table = state.get('table')
            if table is None and state.get('records') is not None:
                table = Table.from_records(state['records'])
            elif table is None and state.get('data_url'):
                logger.info(f"Fetching records from: {state['data_url']}")
                records = fetch_json_records(state['data_url'], state.get('records_path'), self.config.FETCH_TIMEOUT)
                table = Table.from_records(records)
            elif table is None:
                logger.info(f"Starting data ingestion for: {state.get('data_path')}")
                table = self.load_file(state.get('data_path'), state.get('records_path'))

            return {
                'table': table,
                'data_info': self._extract_data_info(table),
                'current_step': 'data_ingestion',
                'next_action': 'data_validation',
                'execution_log': state.get('execution_log', []) + [
                    f"Data loaded successfully: {len(table.rows)} rows, {len(table.columns)} columns"
                ]
            }

        except Exception as e:
            logger.error(f"Data ingestion failed: {str(e)}")
            return {
                'errors': state.get('errors', []) + [f"Data ingestion error: {str(e)}"],
                'current_step': 'data_ingestion',
                'next_action': 'error'
            }

    @log_execution_time
    def load_file(self, data_path: Optional[str], records_path: Optional[str] = None) -> Table:
        """Load a table from a CSV or JSON file"""
        if not data_path:
            raise ValueError("No data source given")
        path = Path(data_path)

        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {data_path}")

        file_size_mb = path.stat().st_size / (1024 * 1024)
        if file_size_mb > self.config.MAX_FILE_SIZE_MB:
            raise ValueError(f"File too large: {file_size_mb:.1f}MB > {self.config.MAX_FILE_SIZE_MB}MB")

        extension = path.suffix.lower()
        if extension not in self.config.SUPPORTED_FILE_FORMATS:
            raise ValueError(f"Unsupported file format: {extension}")

        if extension == '.csv':
            # Keep cells as text; coercion decides their types
            for encoding in ['utf-8', 'latin-1', 'cp1252']:
                try:
                    data = pd.read_csv(path, encoding=encoding, dtype=str, keep_default_na=False)
                    return Table.from_dataframe(data)
                except UnicodeDecodeError:
                    continue
            raise ValueError("Could not decode CSV file with any supported encoding")

        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
        return Table.from_records(records_from_json(document, records_path))

    def validate(self, state: dict) -> dict:
        """Pipeline node: check the table shape and build its coerced copy"""
        logger.info("Starting data validation")

        try:
            table = state['table']
            validate_table(table)
            coerced = coerce_table(table)

            return {
                'coerced_table': coerced,
                'current_step': 'data_validation',
                'next_action': 'proceed',
                'execution_log': state.get('execution_log', []) + [
                    f"Data validation passed: {len(table.rows)} rows coerced"
                ]
            }

        except Exception as e:
            logger.error(f"Data validation failed: {str(e)}")
            return {
                'errors': state.get('errors', []) + [f"Data validation error: {str(e)}"],
                'current_step': 'data_validation',
                'next_action': 'error'
            }

    def _extract_data_info(self, table: Table) -> dict:
        """Basic information about the loaded table"""
        missing = {
            name: sum(1 for v in table.column_values(name) if v is None or v == '')
            for name in table.columns
        }
        return {
            'shape': (len(table.rows), len(table.columns)),
            'columns': list(table.columns),
            'missing_values': missing,
        }
