# auto_insights/agents/analysis_agent.py
from typing import Optional
import logging

from auto_insights.config import AnalysisLimits, AnalysisThresholds
from auto_insights.stats.associations import (
    categorical_associations,
    categorical_numeric_associations,
    top_correlations,
)
from auto_insights.stats.profiler import profile_table
from auto_insights.stats.quality import category_imbalance, duplicate_rows
from auto_insights.stats.temporal import first_date_trend, month_seasonality, weekday_seasonality

logger = logging.getLogger(__name__)

class AnalysisAgent:
    """Agent running the statistical analyses over the coerced table.

    Each node reads ``coerced_table`` from the pipeline state and returns
    only the keys it produces; undefined results come back as ``None`` or
    empty lists, never as errors.
    """

    def __init__(self, thresholds: Optional[AnalysisThresholds] = None,
                 limits: Optional[AnalysisLimits] = None):
        self.thresholds = thresholds or AnalysisThresholds()
        self.limits = limits or AnalysisLimits()

    def _failed(self, state: dict, step: str, error: Exception) -> dict:
        logger.error(f"{step} failed: {str(error)}")
        return {
            'errors': state.get('errors', []) + [f"{step} error: {str(error)}"],
            'current_step': step,
            'next_action': 'error'
        }

    def profile(self, state: dict) -> dict:
        """Per-column profiles"""
        logger.info("Starting column profiling")

        try:
            profile = profile_table(
                state['coerced_table'],
                self.thresholds.OUTLIER_IQR_MULTIPLIER,
                self.thresholds.OUTLIER_Z_THRESHOLD
            )
            return {
                'profile': profile,
                'current_step': 'profiling',
                'execution_log': state.get('execution_log', []) + [f"Profiled {len(profile)} columns"]
            }
        except Exception as e:
            return self._failed(state, 'profiling', e)

    def associations(self, state: dict) -> dict:
        """Numeric correlations and categorical associations"""
        logger.info("Starting association analysis")

        try:
            table = state['coerced_table']
            correlations = top_correlations(table, self.limits.TOP_CORRELATIONS, self.limits.MIN_PAIRED_POINTS)
            cat_cat = categorical_associations(
                table, min_observations=self.limits.MIN_CONTINGENCY_OBSERVATIONS
            )
            cat_num = categorical_numeric_associations(table, min_points=self.limits.MIN_PAIRED_POINTS)

            return {
                'correlations': correlations,
                'cat_cat': cat_cat,
                'cat_num': cat_num,
                'current_step': 'associations',
                'execution_log': state.get('execution_log', []) + [
                    f"Associations: {len(correlations)} correlations, {len(cat_cat)} categorical pairs, "
                    f"{len(cat_num)} categorical-numeric pairs"
                ]
            }
        except Exception as e:
            return self._failed(state, 'associations', e)

    def temporal(self, state: dict) -> dict:
        """Trend, changepoint, anomalies and seasonality"""
        logger.info("Starting temporal analysis")

        try:
            table = state['coerced_table']
            trend = first_date_trend(
                table,
                min_points=self.limits.MIN_TREND_POINTS,
                flat_epsilon=self.thresholds.FLAT_SLOPE_EPSILON,
                changepoint_margin=self.limits.CHANGEPOINT_MARGIN,
                changepoint_min_gain=self.thresholds.CHANGEPOINT_MIN_GAIN,
                anomaly_threshold=self.thresholds.ANOMALY_Z_THRESHOLD
            )
            weekday = weekday_seasonality(table, self.limits.MIN_TREND_POINTS)
            month = month_seasonality(table, self.limits.MIN_TREND_POINTS, self.thresholds.SEASONALITY_STRENGTH)

            message = (f"Trend: {trend.num_col} {trend.dir} over {trend.date_col}"
                       if trend else "Trend: no usable date/numeric pair")
            return {
                'trend': trend,
                'weekday_seasonality': weekday,
                'month_seasonality': month,
                'current_step': 'temporal',
                'execution_log': state.get('execution_log', []) + [message]
            }
        except Exception as e:
            return self._failed(state, 'temporal', e)

    def quality(self, state: dict) -> dict:
        """Duplicate rows and category imbalance"""
        logger.info("Starting data quality checks")

        try:
            table = state['coerced_table']
            duplicates = duplicate_rows(table)
            imbalance = category_imbalance(table)

            return {
                'duplicates': duplicates,
                'imbalance': imbalance,
                'current_step': 'quality',
                'execution_log': state.get('execution_log', []) + [f"Quality: {duplicates} duplicate row(s)"]
            }
        except Exception as e:
            return self._failed(state, 'quality', e)
