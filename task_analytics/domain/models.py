"""Domain models for task analytics aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple


@dataclass(frozen=True)
class AIUsage:
    hours: float
    models: Tuple[str, ...]


@dataclass(frozen=True)
class NormalizedTask:
    """Canonical projection of a raw task record, produced once per aggregation call."""

    index: int
    markets: Tuple[str, ...] = ()
    hours: float = 0.0
    user_id: Optional[str] = None
    products: Optional[str] = None
    category: Optional[str] = None
    subcategory: str = "other"
    reporter_id: Optional[str] = None
    reporter_name: Optional[str] = None
    ai_usage: Tuple[AIUsage, ...] = ()
    use_external_asset: bool = False
    month: Optional[str] = None

    @property
    def ai_hours(self) -> float:
        return sum(entry.hours for entry in self.ai_usage)

    @property
    def ai_models(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for entry in self.ai_usage:
            for model in entry.models:
                seen.setdefault(model, None)
        return tuple(seen)


@dataclass(frozen=True)
class Totals:
    task_count: int = 0
    hours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"taskCount": self.task_count, "hours": self.hours}


@dataclass(frozen=True)
class AggregationBucket:
    key: Tuple[Hashable, ...]
    task_count: int
    hours: float

    @property
    def label(self) -> str:
        return " / ".join(str(part) for part in self.key)


@dataclass(frozen=True)
class TableCell:
    count: int
    percentage: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.percentage is None:
            return {"count": self.count}
        return {"count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class TableRow:
    """One table line; grand total rows carry count-only cells."""

    label: str
    count: int
    hours: float
    cells: Dict[str, TableCell] = field(default_factory=dict)
    key: Optional[Hashable] = None
    is_total: bool = False
    no_data: bool = False
    parent: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "label": self.label,
            "total": self.count,
            "totalHours": self.hours,
        }
        for column, cell in self.cells.items():
            payload[column] = cell.to_dict()
        payload.update(self.extra)
        if self.parent is not None:
            payload["parent"] = self.parent
        if self.is_total:
            payload["isTotal"] = True
        if self.no_data:
            payload["noData"] = True
        return payload


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    header: str
    align: str = "center"
    highlight: bool = False
    kind: str = "cell"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "header": self.header,
            "align": self.align,
            "highlight": self.highlight,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class ChartPoint:
    name: str
    color: str
    value: Optional[float] = None
    tasks: Optional[int] = None
    hours: Optional[float] = None
    series: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name}
        if self.value is not None:
            payload["value"] = self.value
        if self.tasks is not None:
            payload["tasks"] = self.tasks
        if self.hours is not None:
            payload["hours"] = self.hours
        payload.update(self.series)
        payload["color"] = self.color
        return payload


@dataclass(frozen=True)
class ComparisonRow:
    metric: str
    period1: float
    period2: float
    change_percent: float
    period3: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "metric": self.metric,
            "period1": self.period1,
            "period2": self.period2,
            "changePercent": self.change_percent,
        }
        if self.period3 is not None:
            payload["period3"] = self.period3
        return payload


@dataclass(frozen=True)
class AnalyticsOptions:
    """Toggles which sub-outputs are computed; never changes the numbers of the rest."""

    include_hours: bool = True
    include_table: bool = True
    include_grand_total: bool = True
    include_charts: bool = True
    top_n: Optional[int] = None


@dataclass(frozen=True)
class AnalyticsResult:
    table_data: List[TableRow]
    table_columns: List[ColumnSpec]
    chart_series: List[ChartPoint]
    totals: Totals
    charts: Dict[str, List[ChartPoint]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableData": [row.to_dict() for row in self.table_data],
            "tableColumns": [column.to_dict() for column in self.table_columns],
            "chartSeries": [point.to_dict() for point in self.chart_series],
            "charts": {name: [point.to_dict() for point in points] for name, points in self.charts.items()},
            "totals": self.totals.to_dict(),
        }
