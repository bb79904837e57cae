# auto_insights/agents/insight_agent.py
from typing import Optional
import logging

from auto_insights.config import AnalysisLimits, AnalysisThresholds
from auto_insights.insights import build_ai_payload, synthesize
from auto_insights.narrative import NarrativeClient
from auto_insights.types import InsightReport

logger = logging.getLogger(__name__)

class InsightAgent:
    """Agent turning analysis results into findings and narrative text"""

    def __init__(self, thresholds: Optional[AnalysisThresholds] = None,
                 limits: Optional[AnalysisLimits] = None,
                 narrative_client: Optional[NarrativeClient] = None):
        self.thresholds = thresholds or AnalysisThresholds()
        self.limits = limits or AnalysisLimits()
        self.narrative_client = narrative_client or NarrativeClient()

    def synthesize(self, state: dict) -> dict:
        """Pipeline node: bullets, narrative and the generator payload"""
        logger.info("Starting insight synthesis")

        try:
            report = InsightReport(
                profile=state.get('profile') or [],
                bullets=[],
                narrative="",
                correlations=state.get('correlations') or [],
                cat_cat=state.get('cat_cat') or [],
                cat_num=state.get('cat_num') or [],
                trend=state.get('trend'),
                weekday_seasonality=state.get('weekday_seasonality'),
                month_seasonality=state.get('month_seasonality'),
                duplicates=state.get('duplicates') or 0,
                imbalance=state.get('imbalance'),
            )
            report = synthesize(report, self.thresholds, self.limits)
            payload = build_ai_payload(report, self.limits.TOP_CATEGORICAL)

            return {
                'report': report,
                'payload': payload,
                'current_step': 'synthesis',
                'next_action': 'narrative' if state.get('with_narrative') else 'completed',
                'execution_log': state.get('execution_log', []) + [
                    f"Synthesized {len(report.bullets)} finding(s)"
                ]
            }
        except Exception as e:
            logger.error(f"Insight synthesis failed: {str(e)}")
            return {
                'errors': state.get('errors', []) + [f"Insight synthesis error: {str(e)}"],
                'current_step': 'synthesis',
                'next_action': 'error'
            }

    def narrate(self, state: dict) -> dict:
        """Pipeline node: free-text narrative from the external generator"""
        logger.info("Requesting narrative")

        result = self.narrative_client.generate(state['payload'])
        return {
            'narrative': result,
            'current_step': 'narrative',
            'next_action': 'completed',
            'execution_log': state.get('execution_log', []) + [f"Narrative generated ({result.status})"]
        }
