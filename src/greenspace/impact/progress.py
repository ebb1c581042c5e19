"""Progress summaries for impact records.

Works for both CanadaProgress and UserImpact records, which share the
same metric and goal fields.
"""

from __future__ import annotations

from pydantic import BaseModel

from greenspace.core.types import ImpactMetricType
from greenspace.data.models import Record

# metric -> (value field, goal field, unit)
METRIC_FIELDS: dict[ImpactMetricType, tuple[str, str, str]] = {
    ImpactMetricType.PEOPLE_IMPACTED: ("people_impacted", "people_impacted_goal", "people"),
    ImpactMetricType.CLEAN_AIR_PRODUCED: (
        "clean_air_produced_m2", "clean_air_produced_goal_m2", "m2"
    ),
    ImpactMetricType.AREA_AFFECTED: ("area_affected_m2", "area_affected_goal_m2", "m2"),
    ImpactMetricType.KM_OFFSET: ("km_offset", "km_offset_goal", "km"),
}


class MetricProgress(BaseModel):
    metric: ImpactMetricType
    value: float
    goal: float
    unit: str
    ratio: float
    percent: float


class ProgressSummary(BaseModel):
    record_id: str
    metrics: list[MetricProgress]
    overall_percent: float


def metric_progress(metric: ImpactMetricType, value: float, goal: float) -> MetricProgress:
    """Completion of one metric. A zero goal reports zero progress."""
    _, _, unit = METRIC_FIELDS[metric]
    ratio = value / goal if goal > 0 else 0.0
    return MetricProgress(
        metric=metric,
        value=value,
        goal=goal,
        unit=unit,
        ratio=ratio,
        percent=round(min(ratio, 1.0) * 100, 1),
    )


def summarize(record: Record) -> ProgressSummary:
    metrics = []
    for metric, (value_field, goal_field, _) in METRIC_FIELDS.items():
        metrics.append(
            metric_progress(
                metric,
                float(getattr(record, value_field) or 0),
                float(getattr(record, goal_field) or 0),
            )
        )
    overall = sum(m.percent for m in metrics) / len(metrics)
    return ProgressSummary(record_id=record.id, metrics=metrics, overall_percent=round(overall, 1))
