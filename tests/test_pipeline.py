# tests/test_pipeline.py
import logging
from unittest.mock import MagicMock

import pytest

from auto_insights import generate_insights
from auto_insights.config import Config, NarrativeConfig
from auto_insights.narrative import NarrativeClient
from auto_insights.pipeline import InsightPipeline


class TestInsightPipeline:

    @pytest.fixture
    def pipeline(self):
        client = NarrativeClient(NarrativeConfig(PROVIDER="none"), session=MagicMock())
        return InsightPipeline(Config(), narrative_client=client)

    def test_run_with_table(self, pipeline, sales_table):
        result = pipeline.run(table=sales_table)

        assert result['status'] == 'completed'
        assert result['report'] == generate_insights(sales_table)
        assert result['payload']['summary'] == result['report'].narrative
        assert result.get('narrative') is None

    def test_run_with_records(self, pipeline, sales_table):
        result = pipeline.run(records=[dict(r) for r in sales_table.rows])

        assert result['status'] == 'completed'
        assert result['data_info']['shape'] == (12, 5)
        assert result['current_step'] == 'synthesis'

    def test_run_with_csv(self, pipeline, tmp_path):
        path = tmp_path / 'daily.csv'
        lines = ['day,visits,channel'] + [
            f'2023-03-{d:02d},{d * 3},{"web" if d % 3 else "app"}' for d in range(1, 11)
        ]
        path.write_text('\n'.join(lines) + '\n')

        result = pipeline.run(data_path=str(path))

        assert result['status'] == 'completed'
        assert result['report'].trend.dir == 'up'
        assert result['report'].trend.num_col == 'visits'

    def test_with_narrative_uses_fallback(self, pipeline, sales_table):
        result = pipeline.run(table=sales_table, with_narrative=True)

        assert result['status'] == 'completed'
        assert result['current_step'] == 'narrative'
        assert result['narrative'].status == 'fallback'
        assert result['narrative'].recommendations

    def test_empty_records_fail(self, pipeline):
        result = pipeline.run(records=[])

        assert result['status'] == 'failed'
        assert any('no rows' in e for e in result['errors'])
        assert result.get('report') is None

    def test_missing_file_fails(self, pipeline):
        result = pipeline.run(data_path='does_not_exist.csv')

        assert result['status'] == 'failed'
        assert result['current_step'] == 'data_ingestion'

    def test_execution_log_tracks_steps(self, pipeline, sales_table):
        result = pipeline.run(table=sales_table)
        log = result['execution_log']

        assert log[0].startswith('Pipeline started')
        assert any(entry.startswith('Profiled 5 columns') for entry in log)
        assert log[-1].startswith('Synthesized')

    def test_run_logs_last_step(self, pipeline, caplog):
        with caplog.at_level(logging.INFO, logger="auto_insights"):
            pipeline.run(data_path='does_not_exist.csv')

        assert "Stopped after data_ingestion" in caplog.text
