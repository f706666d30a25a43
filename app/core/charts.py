"""
Chart series built from a member's loaded measurements.

Measurements arrive newest first; every series leaves here oldest first so
charts draw left to right. Same-day readings are averaged into one point.
"""

import math
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, Sequence

import pytz

from app.core.config import settings
from app.schemas.chart import AxisBounds, ChartPoint
from app.schemas.measurement import MeasurementRecord

# metric field -> display name
CHART_METRICS = {
    "weight_kg": "Weight (kg)",
    "body_fat_pct": "Body fat (%)",
    "body_water_pct": "Body water (%)",
    "muscle_mass_pct": "Muscle mass (%)",
    "bone_mass_pct": "Bone mass (%)",
    "recommended_kcal": "Recommended intake (kcal)",
    "bmi": "BMI",
}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _resolve_tz(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return pytz.timezone(settings.DISPLAY_TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def _local_wall_clock(ts: datetime, tz: tzinfo) -> datetime:
    # naive timestamps come from stores that drop the offset; they are UTC
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz).replace(tzinfo=None)


def short_label(d: date) -> str:
    return f"{d.day:02d} {_MONTHS[d.month - 1]}"


def build_chart_data(
    measurements: Iterable[MeasurementRecord] | None,
    max_points: int = 30,
    metric: str = "weight_kg",
    bucket_by_day: bool = True,
    tz: tzinfo | str | None = None,
) -> list[ChartPoint]:
    """
    Chart points for one metric, oldest first.

    With bucket_by_day the most recent ``max_points`` calendar days are kept
    and each day's readings are averaged (rounded to one decimal). Without
    it the ``max_points`` most recent readings are plotted as they are.
    Readings that lack the metric are skipped.
    """
    if not measurements or max_points <= 0:
        return []
    if metric not in CHART_METRICS:
        raise ValueError(f"Unknown chart metric: {metric}")

    zone = _resolve_tz(tz)

    samples: list[tuple[datetime, float, datetime]] = []
    for m in measurements:
        value = getattr(m, metric)
        if value is None:
            continue
        samples.append((_local_wall_clock(m.measured_at, zone), float(value), m.measured_at))

    # newest first, whatever order the caller kept
    samples.sort(key=lambda s: s[0], reverse=True)

    if not bucket_by_day:
        recent = samples[:max_points]
        recent.reverse()
        return [
            ChartPoint(
                date=local.date(),
                value=value,
                label=short_label(local.date()),
                measured_at=measured_at,
            )
            for local, value, measured_at in recent
        ]

    buckets: dict[date, list[float]] = {}
    for local, value, _ in samples:
        buckets.setdefault(local.date(), []).append(value)

    days = sorted(buckets)[-max_points:]
    points = []
    for day in days:
        values = buckets[day]
        points.append(
            ChartPoint(
                date=day,
                value=round(sum(values) / len(values), 1),
                label=short_label(day),
                is_average=len(values) > 1,
                count=len(values),
            )
        )
    return points


def weight_delta(points: Sequence[ChartPoint]) -> float | None:
    """Change between the first and the last point of a series."""
    if len(points) < 2:
        return None
    return round(points[-1].value - points[0].value, 1)


def axis_bounds(points: Sequence[ChartPoint]) -> AxisBounds:
    if not points:
        return AxisBounds(y_min=50, y_max=100)

    values = [p.value for p in points]
    lo, hi = min(values), max(values)
    pad = max((hi - lo) * 0.2, 2)
    return AxisBounds(y_min=math.floor(lo - pad), y_max=math.ceil(hi + pad))
