"""
Dashboard and history views.

Turns a result plus history into display-ready dictionaries: risk banner,
parameter grid, alerts, categorized recommendations and the recent-score trend.
"""

from typing import Any, Dict, List, Sequence, Tuple

from models import AnalysisResult, RiskLevel

TREND_WINDOW = 7
MISSING_VALUE = "--"

RISK_COLORS = {
    RiskLevel.SAFE: ("green", "#10b981"),
    RiskLevel.CAUTION: ("amber", "#f59e0b"),
    RiskLevel.UNSAFE: ("red", "#ef4444"),
}

ALERT_WEIGHTS = {
    "high": ("heavy", "#ef4444"),
    "medium": ("moderate", "#f59e0b"),
}

# First match wins
RECOMMENDATION_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("boil", ("boil",)),
    ("filter", ("filter",)),
    ("avoid", ("avoid", "stop")),
    ("report", ("report", "call")),
)
DEFAULT_ACTION = "other"

PARAMETER_ROWS = (
    ("pH Level", "pH"),
    ("TDS (ppm)", "tds"),
    ("Chlorine", "chlorine"),
    ("Turbidity", "turbidity"),
)


def format_score(score: float) -> str:
    if isinstance(score, float) and score.is_integer():
        score = int(score)
    return f"{score}%"


def classify_recommendation(text: str) -> str:
    """Pick an action category for a recommendation, for icon selection only."""
    lowered = text.lower()
    for category, keywords in RECOMMENDATION_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_ACTION


def risk_banner(result: AnalysisResult) -> Dict[str, Any]:
    color, hex_color = RISK_COLORS[result.risk_level]
    return {
        "riskLevel": result.risk_level.value,
        "score": format_score(result.score),
        "color": color,
        "hex": hex_color,
        "summary": result.summary,
        "simpleExplanation": result.simple_explanation,
    }


def parameter_grid(result: AnalysisResult) -> List[Dict[str, Any]]:
    rows = []
    for label, attr in PARAMETER_ROWS:
        value = getattr(result.parameters, attr)
        rows.append({"label": label, "value": MISSING_VALUE if value is None else value})
    return rows


def alert_list(result: AnalysisResult) -> List[Dict[str, Any]]:
    alerts = []
    for alert in result.alerts:
        weight, hex_color = ALERT_WEIGHTS.get(alert.severity, ALERT_WEIGHTS["medium"])
        alerts.append({**alert.to_dict(), "weight": weight, "hex": hex_color})
    return alerts


def recommendation_list(result: AnalysisResult) -> List[Dict[str, str]]:
    return [
        {"text": text, "action": classify_recommendation(text)}
        for text in result.recommendations
    ]


def trend(history: Sequence[AnalysisResult], window: int = TREND_WINDOW) -> List[Dict[str, Any]]:
    """
    Scores of the most recent scans in ascending time order.

    History is stored newest-first, so the window is taken from the front and reversed.
    """
    recent = list(history[:window])
    recent.reverse()
    return [
        {"time": item.created_at.strftime("%H:%M"), "timestamp": item.timestamp, "score": item.score}
        for item in recent
    ]


def build_dashboard(result: AnalysisResult, history: Sequence[AnalysisResult]) -> Dict[str, Any]:
    """Assemble the full dashboard view for the current result."""
    view = {
        "banner": risk_banner(result),
        "parameters": parameter_grid(result),
        "recommendations": recommendation_list(result),
        "trend": trend(history),
        "result": result.to_dict(),
    }
    alerts = alert_list(result)
    if alerts:
        view["alerts"] = alerts
    return view


def build_history(history: Sequence[AnalysisResult]) -> Dict[str, Any]:
    """History list view: one row per saved result, newest first."""
    entries = []
    for index, item in enumerate(history):
        color, hex_color = RISK_COLORS[item.risk_level]
        entries.append({
            "index": index,
            "riskLevel": item.risk_level.value,
            "score": format_score(item.score),
            "date": item.created_at.date().isoformat(),
            "localized": item.location is not None,
            "color": color,
            "hex": hex_color,
        })
    return {"count": len(entries), "badge": f"{len(entries)} Saved", "entries": entries}
