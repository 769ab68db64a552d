"""
trend classification for a single vital-sign metric.

compares the mean of the most recent readings against the mean of the
older readings in the window.
"""

import statistics
from typing import Sequence

# number of most recent values forming the "recent" group
RECENT_WINDOW = 7

# percent change needed to call a trend increasing or decreasing
TREND_CHANGE_PCT = 5


def calculate_trend(values: Sequence[float]) -> str:
    """
    classify the direction of a metric over the window.

    args:
        values: observations for one metric, most recent first

    returns:
        "increasing", "decreasing" or "stable"
    """
    if len(values) < 2:
        return "stable"

    split_point = min(RECENT_WINDOW, len(values))
    recent = values[:split_point]
    older = values[split_point:]

    if not older:
        return "stable"

    recent_avg = statistics.mean(recent)
    older_avg = statistics.mean(older)

    # a zero baseline is not meaningful for these metrics
    if older_avg == 0:
        return "stable"

    change = (recent_avg - older_avg) / older_avg * 100

    if change > TREND_CHANGE_PCT:
        return "increasing"
    if change < -TREND_CHANGE_PCT:
        return "decreasing"
    return "stable"
