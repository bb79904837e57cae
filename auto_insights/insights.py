# auto_insights/insights.py
"""Deterministic insight synthesis.

Turns profiler, association, temporal and quality results into bullet
strings, a one-line narrative, and the compact payload handed to the
narrative generator. Numbers are computed at full precision and only
rounded when rendered.
"""
import logging
from typing import Any, Dict, List, Optional

from auto_insights.config import AnalysisLimits, AnalysisThresholds
from auto_insights.stats.associations import (
    categorical_associations,
    categorical_numeric_associations,
    top_correlations,
)
from auto_insights.stats.coercion import coerce_table
from auto_insights.stats.profiler import profile_table, round_half_up
from auto_insights.stats.quality import category_imbalance, duplicate_rows
from auto_insights.stats.temporal import first_date_trend, month_seasonality, weekday_seasonality
from auto_insights.types import ColumnProfile, InsightReport, Table

logger = logging.getLogger(__name__)


def build_bullets(report: InsightReport,
                  thresholds: Optional[AnalysisThresholds] = None,
                  limits: Optional[AnalysisLimits] = None) -> List[str]:
    """Rule-based findings, deduplicated in first-seen order"""
    thresholds = thresholds or AnalysisThresholds()
    limits = limits or AnalysisLimits()
    bullets: List[str] = []

    for col in report.profile:
        if col.missing_pct >= thresholds.MISSING_PCT_FLAG:
            bullets.append(f'"{col.name}" has ~{col.missing_pct}% missing values.')
        if col.numeric and col.numeric.outliers_iqr:
            bullets.append(f'"{col.name}" has {col.numeric.outliers_iqr} IQR outlier(s).')
        if col.numeric and col.numeric.outliers_z:
            bullets.append(f'"{col.name}" has {col.numeric.outliers_z} 3σ outlier(s).')

    strong_corrs = [c for c in report.correlations if abs(c.r) >= thresholds.CORRELATION_FLAG]
    for c in strong_corrs[:limits.FLAGGED_CORRELATIONS]:
        label = "Monotonic" if c.kind == "spearman" else "Linear"
        bullets.append(f'{label} correlation: "{c.a}" ↔ "{c.b}" (r={c.r:.2f}).')

    trend = report.trend
    if trend and trend.dir != "flat":
        bullets.append(
            f'Trend: "{trend.num_col}" is trending {trend.dir} over "{trend.date_col}" '
            f'(R²={round(trend.r2, 3)}).'
        )
        if trend.changepoint:
            bullets.append(
                f"Structural shift near index {trend.changepoint.at_index} "
                f"(fit improvement ≈ {round_half_up(trend.changepoint.improvement * 100)}%)."
            )
        if trend.anomalies:
            bullets.append(f"{trend.anomalies} timepoint(s) flagged as anomalies (|z|>3).")

    if report.duplicates > 0:
        bullets.append(f"Detected {report.duplicates} duplicate row(s).")

    imb = report.imbalance
    if imb:
        bullets.append(
            f'Category imbalance: "{imb.column}" dominated by "{imb.top_category}" '
            f'(~{round(imb.top_share, 1)}%).'
        )

    weekday = report.weekday_seasonality
    if weekday:
        bullets.append(f'Weekday seasonality: "{weekday.num_col}" peaks on weekday={weekday.best_weekday}.')

    month = report.month_seasonality
    if month and month.strong:
        bullets.append(
            f"Monthly seasonality: peaks in month={month.peak_month + 1}, "
            f"trough in month={month.trough_month + 1}."
        )

    strong_v = [x for x in report.cat_cat if x.v >= thresholds.CRAMERS_V_FLAG]
    for x in strong_v[:limits.FLAGGED_CATEGORICAL]:
        bullets.append(f'Strong association (Cramér’s V): "{x.a}" ↔ "{x.b}" (V={x.v:.2f}).')

    strong_eta = [x for x in report.cat_num if x.eta2 >= thresholds.ETA_SQUARED_FLAG]
    for x in strong_eta[:limits.FLAGGED_CATEGORICAL]:
        bullets.append(f'"{x.cat}" explains ~{round_half_up(x.eta2 * 100)}% variance in "{x.num}" (η²).')

    return list(dict.fromkeys(bullets))


def build_narrative(profile: List[ColumnProfile], bullet_count: int,
                    missing_flag: float = 10) -> str:
    cols = len(profile)
    missing_cols = sum(1 for c in profile if c.missing_pct >= missing_flag)
    outlier_cols = sum(
        1 for c in profile
        if c.numeric and (c.numeric.outliers_iqr + c.numeric.outliers_z) > 0
    )

    text = f"Dataset summary: {cols} column(s)."
    if missing_cols > 0:
        text += f" {missing_cols} column(s) with notable missing values."
    if outlier_cols > 0:
        text += f" Outliers present in {outlier_cols} numeric column(s)."
    if bullet_count > 0:
        text += " Key findings listed below."
    return text


def generate_insights(table: Table,
                      thresholds: Optional[AnalysisThresholds] = None,
                      limits: Optional[AnalysisLimits] = None) -> InsightReport:
    """Run every analysis on the table and synthesize the findings"""
    thresholds = thresholds or AnalysisThresholds()
    limits = limits or AnalysisLimits()
    coerced = coerce_table(table)

    report = analyze(coerced, thresholds, limits)
    return synthesize(report, thresholds, limits)


def analyze(coerced: Table, thresholds: AnalysisThresholds,
            limits: AnalysisLimits) -> InsightReport:
    """Raw analysis results, before bullets and narrative are attached"""
    return InsightReport(
        profile=profile_table(coerced, thresholds.OUTLIER_IQR_MULTIPLIER, thresholds.OUTLIER_Z_THRESHOLD),
        bullets=[],
        narrative="",
        correlations=top_correlations(coerced, limits.TOP_CORRELATIONS, limits.MIN_PAIRED_POINTS),
        cat_cat=categorical_associations(coerced, min_observations=limits.MIN_CONTINGENCY_OBSERVATIONS),
        cat_num=categorical_numeric_associations(coerced, min_points=limits.MIN_PAIRED_POINTS),
        trend=first_date_trend(
            coerced,
            min_points=limits.MIN_TREND_POINTS,
            flat_epsilon=thresholds.FLAT_SLOPE_EPSILON,
            changepoint_margin=limits.CHANGEPOINT_MARGIN,
            changepoint_min_gain=thresholds.CHANGEPOINT_MIN_GAIN,
            anomaly_threshold=thresholds.ANOMALY_Z_THRESHOLD,
        ),
        weekday_seasonality=weekday_seasonality(coerced, limits.MIN_TREND_POINTS),
        month_seasonality=month_seasonality(coerced, limits.MIN_TREND_POINTS, thresholds.SEASONALITY_STRENGTH),
        duplicates=duplicate_rows(coerced),
        imbalance=category_imbalance(coerced),
    )


def synthesize(report: InsightReport,
               thresholds: Optional[AnalysisThresholds] = None,
               limits: Optional[AnalysisLimits] = None) -> InsightReport:
    """Attach bullets and narrative to an analysis result"""
    thresholds = thresholds or AnalysisThresholds()
    bullets = build_bullets(report, thresholds, limits)
    narrative = build_narrative(report.profile, len(bullets), thresholds.MISSING_PCT_FLAG)
    logger.debug(f"Synthesized {len(bullets)} bullet(s)")
    return report.model_copy(update={"bullets": bullets, "narrative": narrative})


def _r4(x: float) -> float:
    return round(float(x), 4)


def build_ai_payload(report: InsightReport, top_categorical: int = 5) -> Dict[str, Any]:
    """Compact, JSON-serializable summary for the narrative generator.

    Contains aggregates only, never row data.
    """
    profile = []
    for c in report.profile:
        entry: Dict[str, Any] = {"name": c.name, "type": c.type.value, "missingPct": c.missing_pct}
        if c.numeric:
            s = c.numeric
            entry["numeric"] = {
                "n": s.n,
                "mean": _r4(s.mean),
                "median": _r4(s.median),
                "min": s.min,
                "max": s.max,
                "stdev": _r4(s.stdev),
                "q1": _r4(s.q1),
                "q3": _r4(s.q3),
                "iqr": _r4(s.iqr),
                "outliersIqr": s.outliers_iqr,
                "outliersZ": s.outliers_z,
            }
        profile.append(entry)

    trend = None
    if report.trend:
        t = report.trend
        trend = {
            "dateCol": t.date_col,
            "numCol": t.num_col,
            "r2": round(t.r2, 3),
            "dir": t.dir,
            "anomalies": t.anomalies,
            "changepoint": {
                "atIndex": t.changepoint.at_index,
                "improvement": round(t.changepoint.improvement, 2),
            } if t.changepoint else None,
        }

    weekday = report.weekday_seasonality
    month = report.month_seasonality
    seasonality = {
        "weekday": {
            "dateCol": weekday.date_col,
            "numCol": weekday.num_col,
            "bestWeekday": weekday.best_weekday,
            "bestWeekdayAvg": _r4(weekday.best_weekday_avg),
        } if weekday else None,
        "month": {
            "dateCol": month.date_col,
            "numCol": month.num_col,
            "peakMonth": month.peak_month,
            "troughMonth": month.trough_month,
            "strong": month.strong,
        } if month else None,
    }

    imb = report.imbalance
    return {
        "summary": report.narrative,
        "bullets": list(report.bullets),
        "profile": profile,
        "correlations": [
            {"a": c.a, "b": c.b, "r": _r4(c.r), "kind": c.kind} for c in report.correlations
        ],
        "trend": trend,
        "seasonality": seasonality,
        "duplicates": report.duplicates,
        "imbalance": {
            "column": imb.column,
            "topCategory": imb.top_category,
            "topShare": round(imb.top_share, 1),
        } if imb else None,
        "categorical": {
            "catCatTop": [
                {"a": x.a, "b": x.b, "v": _r4(x.v)} for x in report.cat_cat[:top_categorical]
            ],
            "catNumTop": [
                {"cat": x.cat, "num": x.num, "eta2": _r4(x.eta2)} for x in report.cat_num[:top_categorical]
            ],
        },
    }
