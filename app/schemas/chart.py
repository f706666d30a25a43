from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ChartPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    value: float
    label: str
    is_average: bool = False
    count: int = 1
    # Only set for point-per-record series
    measured_at: datetime | None = None


class AxisBounds(BaseModel):
    y_min: int
    y_max: int


class ChartOut(BaseModel):
    metric: str
    points: list[ChartPoint]
    delta: float | None
    bounds: AxisBounds
