# tests/test_logging_config.py
import logging

import pytest

from auto_insights.utils.logging_config import PipelineLogger, get_logger, log_execution_time


class TestLogging:

    def test_get_logger_namespaces_names(self):
        assert get_logger("charts").name == "auto_insights.charts"
        assert get_logger("auto_insights.stats").name == "auto_insights.stats"

    def test_pipeline_logger_reports_failure(self, caplog):
        with caplog.at_level(logging.INFO, logger="auto_insights"):
            with pytest.raises(RuntimeError):
                with PipelineLogger("profiling") as step:
                    step.log_metric("columns", 4)
                    raise RuntimeError("boom")

        assert "Metric - columns: 4" in caplog.text
        assert "Failed profiling" in caplog.text

    def test_execution_time_decorator(self, caplog):
        @log_execution_time
        def double(x):
            return x * 2

        with caplog.at_level(logging.INFO):
            assert double(3) == 6

        assert "Completed double" in caplog.text

    def test_pipeline_logger_progress(self, caplog):
        with caplog.at_level(logging.INFO, logger="auto_insights"):
            with PipelineLogger("profiling") as step:
                step.log_progress("halfway")

        assert "[profiling] halfway" in caplog.text
        assert "Completed profiling" in caplog.text
