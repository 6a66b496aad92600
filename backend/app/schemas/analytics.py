from pydantic import BaseModel


class MetricResult(BaseModel):
    """A current-period value and its change against the previous period."""

    value: int | float
    percent_change: float


class OverviewResponse(BaseModel):
    """Period-over-period overview metrics."""

    total_visitors: MetricResult
    page_views: MetricResult
    avg_session_duration: MetricResult
    bounce_rate: MetricResult


class TopPage(BaseModel):
    page_url: str
    views: int


class TopReferrer(BaseModel):
    referrer: str
    visits: int


class NewVsReturning(BaseModel):
    """Visitors in the current window split by first-seen time."""

    new_visitors: int
    returning_visitors: int
    new_percentage: float
    returning_percentage: float


class ConversionRate(BaseModel):
    conversions: int
    visitors: int
    conversion_rate: MetricResult


class GlobalReach(BaseModel):
    countries: MetricResult


class BreakdownItem(BaseModel):
    """Share of page views for one dimension value (device, browser, country)."""

    name: str
    count: int
    percentage: float


class BreakdownResponse(BaseModel):
    data: list[BreakdownItem]
