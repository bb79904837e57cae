from auto_insights.agents.analysis_agent import AnalysisAgent
from auto_insights.agents.data_agent import DataIngestionAgent
from auto_insights.agents.insight_agent import InsightAgent

__all__ = ["AnalysisAgent", "DataIngestionAgent", "InsightAgent"]
