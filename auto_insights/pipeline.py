# auto_insights/pipeline.py
from langgraph.graph import StateGraph, END
from typing import TypedDict, Any, Dict, Optional, List
from datetime import datetime
import logging

from auto_insights.agents import AnalysisAgent, DataIngestionAgent, InsightAgent
from auto_insights.config import Config, get_config
from auto_insights.narrative import NarrativeClient
from auto_insights.types import (
    CategoricalAssociation,
    CategoricalNumericAssociation,
    CategoryImbalance,
    ColumnProfile,
    Correlation,
    InsightReport,
    MonthSeasonality,
    NarrativeResult,
    Table,
    TrendResult,
    WeekdaySeasonality,
)
from auto_insights.utils.logging_config import PipelineLogger

logger = logging.getLogger(__name__)

class PipelineState(TypedDict, total=False):
    """State shared across all agents"""
    # Input
    table: Optional[Table]
    records: Optional[List[Dict[str, Any]]]
    data_path: Optional[str]
    data_url: Optional[str]
    records_path: Optional[str]
    with_narrative: bool

    # Ingestion
    data_info: Optional[dict]
    coerced_table: Optional[Table]

    # Analysis
    profile: List[ColumnProfile]
    correlations: List[Correlation]
    cat_cat: List[CategoricalAssociation]
    cat_num: List[CategoricalNumericAssociation]
    trend: Optional[TrendResult]
    weekday_seasonality: Optional[WeekdaySeasonality]
    month_seasonality: Optional[MonthSeasonality]
    duplicates: int
    imbalance: Optional[CategoryImbalance]

    # Synthesis
    report: Optional[InsightReport]
    payload: Optional[dict]
    narrative: Optional[NarrativeResult]

    # Workflow
    current_step: str
    next_action: str
    errors: List[str]
    execution_log: List[str]

# Analysis nodes run in this order after validation
ANALYSIS_STEPS = ["profiling", "associations", "temporal", "quality", "synthesis"]

class InsightPipeline:
    def __init__(self, config: Optional[Config] = None, narrative_client: Optional[NarrativeClient] = None):
        """Initialize the insight pipeline.

        No checkpointer is attached, so nothing survives between runs.
        """
        self.config = config or get_config()
        self.data_agent = DataIngestionAgent(self.config.ingestion)
        self.analysis_agent = AnalysisAgent(self.config.thresholds, self.config.limits)
        self.insight_agent = InsightAgent(
            self.config.thresholds,
            self.config.limits,
            narrative_client or NarrativeClient(self.config.narrative)
        )

        self.graph = self._build_graph()
        self.compiled_graph = self.graph.compile()

        logger.info("Insight pipeline initialized")

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph workflow"""
        workflow = StateGraph(PipelineState)

        workflow.add_node("data_ingestion", self.data_agent.process)
        workflow.add_node("data_validation", self.data_agent.validate)
        workflow.add_node("profiling", self.analysis_agent.profile)
        workflow.add_node("associations", self.analysis_agent.associations)
        workflow.add_node("temporal", self.analysis_agent.temporal)
        workflow.add_node("quality", self.analysis_agent.quality)
        workflow.add_node("synthesis", self.insight_agent.synthesize)
        workflow.add_node("narrative", self.insight_agent.narrate)

        workflow.set_entry_point("data_ingestion")

        # Any step that reports an error ends the run
        chain = ["data_ingestion", "data_validation"] + ANALYSIS_STEPS
        for current, following in zip(chain, chain[1:]):
            workflow.add_conditional_edges(
                current,
                self._route_on_error,
                {"continue": following, "error": END}
            )

        workflow.add_conditional_edges(
            "synthesis",
            self._route_after_synthesis,
            {"narrative": "narrative", "end": END}
        )
        workflow.add_edge("narrative", END)

        return workflow

    def _route_on_error(self, state: PipelineState) -> str:
        return "error" if state.get("next_action") == "error" else "continue"

    def _route_after_synthesis(self, state: PipelineState) -> str:
        return "narrative" if state.get("next_action") == "narrative" else "end"

    def run(self,
            table: Optional[Table] = None,
            data_path: Optional[str] = None,
            records: Optional[List[Dict[str, Any]]] = None,
            data_url: Optional[str] = None,
            records_path: Optional[str] = None,
            with_narrative: bool = False) -> dict:
        """Execute the complete analysis synchronously"""

        initial_state = PipelineState(
            table=table,
            records=records,
            data_path=data_path,
            data_url=data_url,
            records_path=records_path,
            with_narrative=with_narrative,
            current_step="initialization",
            next_action="data_ingestion",
            errors=[],
            execution_log=[f"Pipeline started at {datetime.now()}"]
        )

        source = data_path or data_url or ("table" if table is not None else "records")
        logger.info(f"Starting insight pipeline for: {source}")

        try:
            with PipelineLogger(f"insight pipeline for {source}", logger) as step:
                final_state = self.compiled_graph.invoke(initial_state)
                step.log_progress(f"Stopped after {final_state.get('current_step')}")
                report = final_state.get("report")
                if report is not None:
                    step.log_metric("findings", len(report.bullets))
        except Exception as e:
            logger.error(f"Pipeline failed for {source}: {str(e)}")
            return {
                "status": "failed",
                "error": str(e),
                "source": source
            }

        final_state["status"] = "failed" if final_state.get("errors") else "completed"
        logger.info(f"Pipeline {final_state['status']} for {source}")
        return final_state
