# auto_insights/narrative.py
"""Client for the external narrative generator.

The generator receives the compact analysis payload and answers with free
text. Its answer is only type-checked here. Whenever the generator is not
configured or does not answer usefully, rule-based recommendations are
returned instead. A charts-only summary (see
``auto_insights.charts.summarize_charts``) has its own prompt and fallback.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import requests

from auto_insights.config import NarrativeConfig
from auto_insights.stats.profiler import round_half_up
from auto_insights.types import NarrativeResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "\n".join([
    "You are a senior data analyst.",
    "You will receive a compact analysis JSON with metrics (types, missing%, outliers, correlations, "
    "trend R2, seasonality, imbalance, duplicates, Cramér’s V, η²).",
    "Return a JSON OBJECT ONLY (no prose outside JSON). Do not invent numbers.",
    "{",
    '  "narrative": string,',
    '  "recommendations": string[],',
    '  "risks": string[],',
    '  "nextCharts": string[]',
    "}",
    "Be concise, actionable, business-friendly.",
])

CHARTS_SYSTEM_PROMPT = "\n".join([
    "You are a senior data analyst summarizing visualizations.",
    "You will receive a minimal JSON describing rendered charts (e.g., line yMin/yMax, bar top categories, "
    "scatter point count).",
    "Infer trends, dominance/imbalance, and suggested follow-ups. Do NOT invent metrics not implied by the JSON.",
    "Return a JSON OBJECT ONLY:",
    "{",
    '  "narrative": string,',
    '  "recommendations": string[],',
    '  "risks": string[],',
    '  "nextCharts": string[]',
    "}",
    "Keep it short, pragmatic, and decision-focused.",
])

MAX_RECOMMENDATIONS = 8
MAX_CHART_RECOMMENDATIONS = 6
MAX_RISKS = 4


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def parse_narrative_response(parsed: Any) -> NarrativeResult:
    """Keep only well-typed fields of a generator answer"""
    if not isinstance(parsed, dict):
        parsed = {}
    narrative = parsed.get("narrative")
    return NarrativeResult(
        status="ai",
        narrative=narrative if isinstance(narrative, str) else "",
        recommendations=_strings(parsed.get("recommendations")),
        risks=_strings(parsed.get("risks")),
        next_charts=_strings(parsed.get("nextCharts")),
    )


def fallback_narrative(payload: Dict[str, Any]) -> NarrativeResult:
    """Rule-based recommendations computed from the payload alone"""
    recs: List[str] = []
    risks: List[str] = []

    profile = payload.get("profile") or []
    missing = sorted(
        (c for c in profile if (c.get("missingPct") or 0) >= 10),
        key=lambda c: c["missingPct"], reverse=True,
    )[:3]
    if missing:
        names = ", ".join(f"{c['name']} (~{c['missingPct']}%)" for c in missing)
        recs.append(f"Handle missing values: {names}. Try imputation (median/mode) or drop if non-critical.")

    def outlier_total(c: Dict[str, Any]) -> int:
        numeric = c.get("numeric") or {}
        return (numeric.get("outliersIqr") or 0) + (numeric.get("outliersZ") or 0)

    outliers = sorted((c for c in profile if outlier_total(c) > 0), key=outlier_total, reverse=True)[:3]
    if outliers:
        names = ", ".join(c["name"] for c in outliers)
        recs.append(f"Mitigate outliers in {names} via winsorization or robust scaling; compare metrics pre/post.")

    for c in [c for c in payload.get("correlations") or [] if abs(c.get("r") or 0) >= 0.7][:3]:
        recs.append(
            f"Examine relationship {c['a']} ↔ {c['b']} (r={c['r']:.2f}): scatter + partial correlation; "
            f"watch multicollinearity."
        )

    trend = payload.get("trend")
    if trend and trend.get("dir") and trend.get("r2"):
        recs.append(
            f'Model time trend on "{trend["numCol"]}" vs "{trend["dateCol"]}" (R²={trend["r2"]}); check changepoints.'
        )

    imbalance = payload.get("imbalance")
    if imbalance and imbalance.get("topShare"):
        recs.append(
            f'Rebalance "{imbalance["column"]}" (top category ~{imbalance["topShare"]}%): '
            f"stratified sampling or class weights."
        )

    if (payload.get("duplicates") or 0) > 0:
        risks.append(f"Dataset contains {payload['duplicates']} duplicate rows; deduplicate before training.")

    categorical = payload.get("categorical") or {}
    for x in [x for x in categorical.get("catCatTop") or [] if (x.get("v") or 0) >= 0.5][:2]:
        recs.append(
            f'Assess categorical association "{x["a"]}" ↔ "{x["b"]}" (Cramér’s V={x["v"]:.2f}); '
            f"consider redundancy or interactions."
        )
    for x in [x for x in categorical.get("catNumTop") or [] if (x.get("eta2") or 0) >= 0.2][:2]:
        recs.append(
            f'"{x["cat"]}" explains ~{round(x["eta2"] * 100)}% variance in "{x["num"]}" (η²); '
            f"consider one-hot/target encoding + regularization."
        )

    return NarrativeResult(
        status="fallback",
        narrative="AI fallback: actionable, rule-based recommendations.",
        recommendations=list(dict.fromkeys(recs))[:MAX_RECOMMENDATIONS],
        risks=list(dict.fromkeys(risks))[:MAX_RISKS],
        next_charts=[],
    )


def fallback_from_charts(summary: Dict[str, Any]) -> NarrativeResult:
    """Rule-based takeaways from a charts summary alone"""
    charts = summary.get("charts") if isinstance(summary, dict) else None
    charts = charts if isinstance(charts, list) else []

    def first_of(chart_type: str) -> Optional[Dict[str, Any]]:
        return next((c for c in charts if isinstance(c, dict) and c.get("type") == chart_type), None)

    bullets: List[str] = []

    line = first_of("line")
    if line and isinstance(line.get("yMin"), (int, float)) and isinstance(line.get("yMax"), (int, float)):
        direction = "increasing" if line["yMax"] - line["yMin"] > 0 else "flat"
        bullets.append(
            f"Line • {line['y']} over {line['x']}: range {line['yMin']:g} → {line['yMax']:g} ({direction}). "
            f"Check trend stability and seasonality."
        )

    bar = first_of("barTopK")
    if bar and bar.get("top"):
        top = bar["top"]
        total = sum(t.get("count", t.get("value", 0)) for t in top)
        first = top[0]
        share = f" (~{round_half_up(first.get('count', first.get('value', 0)) / total * 100)}%)" if total else ""
        bullets.append(
            f"Bar • Top {bar.get('k')} of {bar.get('cat')}: “{first.get('name')}” leads{share}. "
            f"Consider long tail vs head strategy."
        )

    scatter = first_of("scatter")
    if scatter and scatter.get("points"):
        bullets.append(
            f"Scatter • {scatter['x']} vs {scatter['y']}: {scatter['points']} points. "
            f"Inspect nonlinearity/outliers; fit robust regression if needed."
        )

    return NarrativeResult(
        status="fallback",
        narrative="Charts summary (deterministic): quick, action-oriented takeaways.",
        recommendations=bullets[:MAX_CHART_RECOMMENDATIONS],
        risks=[],
        next_charts=[],
    )


class NarrativeClient:
    """Calls an OpenAI-compatible chat completions endpoint"""

    def __init__(self, config: Optional[NarrativeConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or NarrativeConfig()
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return self.config.PROVIDER == "groq" and bool(self.config.API_KEY)

    def _request_body(self, payload: Dict[str, Any], system_prompt: str = SYSTEM_PROMPT) -> Dict[str, Any]:
        return {
            "model": self.config.MODEL,
            "temperature": self.config.TEMPERATURE,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": json.dumps(payload)},
            ],
        }

    def generate(self, payload: Dict[str, Any], charts_only: bool = False) -> NarrativeResult:
        """Narrative for an analysis payload, or for a charts summary when
        ``charts_only`` is set; never raises"""
        if charts_only:
            system_prompt, fallback = CHARTS_SYSTEM_PROMPT, fallback_from_charts
        else:
            system_prompt, fallback = SYSTEM_PROMPT, fallback_narrative

        if not self.is_configured:
            logger.info("Narrative provider not configured; using rule-based fallback")
            return fallback(payload)

        try:
            response = self.session.post(
                self.config.API_URL,
                headers={"Authorization": f"Bearer {self.config.API_KEY}"},
                json=self._request_body(payload, system_prompt),
                timeout=self.config.TIMEOUT,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            result = parse_narrative_response(json.loads(content))
        except requests.RequestException as e:
            logger.error(f"Narrative request failed: {str(e)}")
            return fallback(payload)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Narrative response malformed: {str(e)}")
            return fallback(payload)

        if not result.narrative.strip() and not result.recommendations:
            logger.warning("Narrative provider returned nothing useful; using rule-based fallback")
            return fallback(payload)
        return result
