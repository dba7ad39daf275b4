from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"

@dataclass(frozen=True)
class Transaction:
    date: str           # ISO date, e.g. 2024-03-15
    amount: float
    type: str           # "income" | "expense"

@dataclass(frozen=True)
class DataPoint:
    date: str           # YYYY-MM-01
    value: float

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DataPoint":
        return cls(date=str(raw["date"]), value=float(raw["value"]))

@dataclass(frozen=True)
class ForecastPoint:
    date: str
    predicted: float
    lower: float
    upper: float
    actual: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "date": self.date,
            "predicted": self.predicted,
            "lower": self.lower,
            "upper": self.upper,
        }
        if self.actual is not None:
            out["actual"] = self.actual
        return out

@dataclass
class ForecastResult:
    method: str
    forecasts: List[ForecastPoint] = field(default_factory=list)
    trend: str = STABLE
    seasonality: bool = False
    accuracy: Optional[float] = None  # semantics depend on the method

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "method": self.method,
            "forecasts": [p.to_dict() for p in self.forecasts],
            "trend": self.trend,
            "seasonality": self.seasonality,
        }
        if self.accuracy is not None:
            out["accuracy"] = self.accuracy
        return out

SeriesInput = Iterable[Union[DataPoint, Mapping[str, Any]]]

def as_data_points(data: SeriesInput) -> List[DataPoint]:
    # Accept either DataPoint objects or {"date": ..., "value": ...} mappings
    points: List[DataPoint] = []
    for p in data:
        points.append(p if isinstance(p, DataPoint) else DataPoint.from_dict(p))
    return points
