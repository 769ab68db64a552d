"""
insight aggregation over a trailing window of vitals readings.

combines summary statistics, per-metric trends and status, threshold-driven
recommendations and the most recent alerts into one summary. the summary is
recomputed on every request and never stored.
"""

import logging
import math
import statistics
from typing import Any, Dict, List, Optional, Sequence

from backend.repositories.vitals_repository import VitalsRepository
from backend.services.alert_engine import (
    blood_pressure_status,
    oxygen_status,
    blood_sugar_status,
)
from backend.services.trend_analyzer import calculate_trend

logger = logging.getLogger(__name__)


# configuration constants
DEFAULT_WINDOW_DAYS = 30
DEFAULT_ALERTS_RECENCY_DAYS = 7
DEFAULT_ALERTS_LIMIT = 10

# fixed recommendation text, one per metric
BLOOD_PRESSURE_RECOMMENDATION = (
    "Consider lifestyle changes to reduce blood pressure: "
    "reduce sodium, increase exercise, manage stress"
)
OXYGEN_RECOMMENDATION = (
    "Low oxygen levels detected. Consult your doctor about "
    "breathing exercises or oxygen therapy"
)
BLOOD_SUGAR_RECOMMENDATION = (
    "High blood sugar levels. Monitor carbohydrate intake and "
    "consult about medication adjustments"
)
FALLBACK_RECOMMENDATION = "Keep up the good work! Continue monitoring regularly."


def _round_half_up(value: float) -> int:
    """round to the nearest whole unit, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def compute_summary_stats(readings: Sequence[Any]) -> Dict[str, Any]:
    """
    compute reading counts for the window.

    args:
        readings: readings in the window

    returns:
        dict with totalReadings, daysTracked and averageReadingsPerDay
    """
    total = len(readings)
    days_tracked = len({r.date for r in readings})

    return {
        "totalReadings": total,
        "daysTracked": days_tracked,
        "averageReadingsPerDay": total / max(1, days_tracked),
    }


def _blood_pressure_trend(readings: Sequence[Any]) -> Optional[Dict[str, str]]:
    """
    analyze blood pressure over readings carrying both values.

    trend direction follows the systolic values.
    """
    bp_readings = [r for r in readings if r.systolic and r.diastolic]
    if not bp_readings:
        return None

    avg_systolic = statistics.mean([r.systolic for r in bp_readings])
    avg_diastolic = statistics.mean([r.diastolic for r in bp_readings])

    return {
        "average": f"{_round_half_up(avg_systolic)}/{_round_half_up(avg_diastolic)}",
        "trend": calculate_trend([r.systolic for r in bp_readings]),
        "status": blood_pressure_status(avg_systolic, avg_diastolic),
    }


def _oxygen_trend(readings: Sequence[Any]) -> Optional[Dict[str, str]]:
    """analyze oxygen saturation over readings that measured it."""
    values = [r.oxygen_level for r in readings if r.oxygen_level]
    if not values:
        return None

    avg_oxygen = statistics.mean(values)

    return {
        "average": f"{_round_half_up(avg_oxygen)}%",
        "trend": calculate_trend(values),
        "status": oxygen_status(avg_oxygen),
    }


def _blood_sugar_trend(readings: Sequence[Any]) -> Optional[Dict[str, str]]:
    """analyze blood sugar over readings that measured it."""
    values = [r.blood_sugar for r in readings if r.blood_sugar]
    if not values:
        return None

    avg_sugar = statistics.mean(values)

    return {
        "average": f"{_round_half_up(avg_sugar)} mg/dL",
        "trend": calculate_trend(values),
        "status": blood_sugar_status(avg_sugar),
    }


def compute_trends(readings: Sequence[Any]) -> Dict[str, Dict[str, str]]:
    """
    compute trend results for every metric with data in the window.

    args:
        readings: readings in the window, most recent first

    returns:
        dict keyed by bloodPressure, oxygenLevel and bloodSugar; metrics
        without any readings are omitted
    """
    trends = {}

    bp = _blood_pressure_trend(readings)
    if bp:
        trends["bloodPressure"] = bp

    oxygen = _oxygen_trend(readings)
    if oxygen:
        trends["oxygenLevel"] = oxygen

    sugar = _blood_sugar_trend(readings)
    if sugar:
        trends["bloodSugar"] = sugar

    return trends


def build_recommendations(trends: Dict[str, Dict[str, str]]) -> List[str]:
    """
    turn metric statuses into recommendation text.

    order is always blood pressure, oxygen, blood sugar. when no metric
    breaches its threshold the fallback encouragement is returned alone.

    args:
        trends: output of compute_trends()

    returns:
        list of recommendation strings (never empty)
    """
    recommendations = []

    if trends.get("bloodPressure", {}).get("status") == "high":
        recommendations.append(BLOOD_PRESSURE_RECOMMENDATION)

    if trends.get("oxygenLevel", {}).get("status") == "low":
        recommendations.append(OXYGEN_RECOMMENDATION)

    if trends.get("bloodSugar", {}).get("status") == "high":
        recommendations.append(BLOOD_SUGAR_RECOMMENDATION)

    if not recommendations:
        recommendations.append(FALLBACK_RECOMMENDATION)

    return recommendations


def summarize_readings(
    readings: Sequence[Any],
    recent_alerts: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    build an insight summary from already-fetched readings.

    args:
        readings: readings in the window, most recent first
        recent_alerts: alert rows to attach (default none)

    returns:
        dict with summary, trends, recommendations and alerts
    """
    trends = compute_trends(readings)

    return {
        "summary": compute_summary_stats(readings),
        "trends": trends,
        "recommendations": build_recommendations(trends),
        "alerts": list(recent_alerts or []),
    }


def generate_insights(
    repository: VitalsRepository,
    window_days: int = DEFAULT_WINDOW_DAYS,
    alerts_recency_days: int = DEFAULT_ALERTS_RECENCY_DAYS,
    alerts_limit: int = DEFAULT_ALERTS_LIMIT,
) -> Dict[str, Any]:
    """
    orchestrate the full insight computation for one request.

    both queries run before anything is assembled, so a storage failure
    yields no partial summary.

    args:
        repository: reading store to query
        window_days: trend window in days (default 30)
        alerts_recency_days: recent alert window in days (default 7)
        alerts_limit: maximum number of recent alerts (default 10)

    returns:
        insight summary dict

    raises:
        StorageError: if either query fails
    """
    readings = repository.get_recent_readings(window_days)
    recent_alerts = repository.get_recent_alerts(alerts_recency_days, alerts_limit)

    insights = summarize_readings(readings, recent_alerts)

    logger.debug(
        "insights computed over %d readings (%d days window)",
        len(readings), window_days
    )
    return insights


# the dashboard-facing name for the aggregator
summarize = generate_insights
