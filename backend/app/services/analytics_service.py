import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.core.exceptions import (
    DatastoreError,
    InvalidDateFormatError,
    InvalidRangeError,
    MissingParameterError,
)
from app.core.periods import (
    IncompleteRange,
    InvalidDateFormat,
    InvalidRange,
    Period,
    PeriodError,
    PeriodPair,
    resolve_periods,
    resolve_window,
)
from app.models.event import CONVERSION, PAGE_VIEW, TrackingEvent
from app.schemas.analytics import (
    BreakdownItem,
    BreakdownResponse,
    ConversionRate,
    GlobalReach,
    NewVsReturning,
    OverviewResponse,
    TopPage,
    TopReferrer,
)
from app.services import metrics

logger = logging.getLogger(__name__)

_PERIOD_ERRORS: dict[type[PeriodError], type[Exception]] = {
    IncompleteRange: MissingParameterError,
    InvalidDateFormat: InvalidDateFormatError,
    InvalidRange: InvalidRangeError,
}


def periods_or_400(from_: str | None, to: str | None) -> PeriodPair:
    """Resolve reporting windows, turning rejected ranges into 400 errors."""
    try:
        return resolve_periods(from_, to)
    except PeriodError as e:
        raise _PERIOD_ERRORS[type(e)](str(e)) from None


def window_or_400(from_: str | None, to: str | None) -> Period | None:
    try:
        return resolve_window(from_, to)
    except PeriodError as e:
        raise _PERIOD_ERRORS[type(e)](str(e)) from None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AnalyticsService:
    """Service for analytics queries over tracking events."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, stmt: Any) -> Any:
        """Run a query, surfacing driver failures as ``DatastoreError``."""
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.warning("Analytics query failed: %s", message)
            raise DatastoreError(message) from e

    @staticmethod
    def _scope(project_id: int, period: Period | None) -> list[Any]:
        conditions = [TrackingEvent.project_id == project_id]
        if period is not None:
            conditions += [
                TrackingEvent.created_at >= period.start,
                TrackingEvent.created_at <= period.end,
            ]
        return conditions

    async def _page_view_rows(self, project_id: int, period: Period) -> list[Any]:
        result = await self._execute(
            select(
                TrackingEvent.event_type,
                TrackingEvent.visitor_id,
                TrackingEvent.session_id,
                TrackingEvent.created_at,
            ).where(*self._scope(project_id, period), TrackingEvent.event_type == PAGE_VIEW)
        )
        return list(result.all())

    async def _distinct_count(
        self,
        project_id: int,
        period: Period,
        column: InstrumentedAttribute[Any],
        event_type: str,
    ) -> int:
        result = await self._execute(
            select(func.count(distinct(column))).where(
                *self._scope(project_id, period),
                TrackingEvent.event_type == event_type,
                column.isnot(None),
            )
        )
        return int(result.scalar_one())

    async def get_overview(
        self, project_id: int | None, from_: str | None = None, to: str | None = None
    ) -> OverviewResponse:
        """Current-vs-previous visitors, page views, session duration and bounce rate.

        One page-view fetch per period feeds all four extractors.
        """
        if project_id is None:
            raise MissingParameterError("project_id is required.")
        periods = periods_or_400(from_, to)

        current = await self._page_view_rows(project_id, periods.current)
        previous = await self._page_view_rows(project_id, periods.previous)

        return OverviewResponse(
            total_visitors=metrics.metric_result(
                metrics.unique_visitor_count(current),
                metrics.unique_visitor_count(previous),
                rounded=False,
            ),
            page_views=metrics.metric_result(
                metrics.page_view_count(current),
                metrics.page_view_count(previous),
                rounded=False,
            ),
            avg_session_duration=metrics.metric_result(
                metrics.average_session_duration(current),
                metrics.average_session_duration(previous),
            ),
            bounce_rate=metrics.metric_result(
                metrics.bounce_rate(current),
                metrics.bounce_rate(previous),
            ),
        )

    async def get_top_pages(
        self,
        project_id: int,
        from_: str | None = None,
        to: str | None = None,
        limit: int = 5,
    ) -> list[TopPage]:
        """Most viewed pages, ranked by the database. No range means all time."""
        window = window_or_400(from_, to)
        views = func.count().label("views")
        result = await self._execute(
            select(TrackingEvent.page_url, views)
            .where(
                *self._scope(project_id, window),
                TrackingEvent.event_type == PAGE_VIEW,
                TrackingEvent.page_url.isnot(None),
            )
            .group_by(TrackingEvent.page_url)
            .order_by(views.desc(), TrackingEvent.page_url.asc())
            .limit(limit)
        )
        return [TopPage(page_url=row[0], views=row[1]) for row in result.all()]

    async def get_top_referrers(
        self,
        project_id: int,
        from_: str | None = None,
        to: str | None = None,
        limit: int = 5,
    ) -> list[TopReferrer]:
        """Most common non-empty referrers. No range means all time."""
        window = window_or_400(from_, to)
        visits = func.count().label("visits")
        result = await self._execute(
            select(TrackingEvent.referrer, visits)
            .where(
                *self._scope(project_id, window),
                TrackingEvent.event_type == PAGE_VIEW,
                TrackingEvent.referrer.isnot(None),
                TrackingEvent.referrer != "",
            )
            .group_by(TrackingEvent.referrer)
            .order_by(visits.desc(), TrackingEvent.referrer.asc())
            .limit(limit)
        )
        return [TopReferrer(referrer=row[0], visits=row[1]) for row in result.all()]

    async def get_new_vs_returning(
        self, project_id: int, from_: str | None = None, to: str | None = None
    ) -> NewVsReturning:
        """Split current-window visitors by whether they were first seen before it."""
        current = periods_or_400(from_, to).current

        in_window = (
            select(TrackingEvent.visitor_id)
            .where(
                *self._scope(project_id, current),
                TrackingEvent.event_type == PAGE_VIEW,
                TrackingEvent.visitor_id.isnot(None),
            )
            .distinct()
        )
        result = await self._execute(
            select(TrackingEvent.visitor_id, func.min(TrackingEvent.created_at))
            .where(
                TrackingEvent.project_id == project_id,
                TrackingEvent.event_type == PAGE_VIEW,
                TrackingEvent.visitor_id.in_(in_window),
            )
            .group_by(TrackingEvent.visitor_id)
        )

        new = returning = 0
        for _, first_seen in result.all():
            if _as_utc(first_seen) < current.start:
                returning += 1
            else:
                new += 1
        total = new + returning
        return NewVsReturning(
            new_visitors=new,
            returning_visitors=returning,
            new_percentage=metrics.share(new, total),
            returning_percentage=metrics.share(returning, total),
        )

    async def get_conversion_rate(
        self, project_id: int, from_: str | None = None, to: str | None = None
    ) -> ConversionRate:
        """Share of page-view visitors that also recorded a conversion."""
        periods = periods_or_400(from_, to)

        rates: list[float] = []
        counts: list[tuple[int, int]] = []
        for period in (periods.current, periods.previous):
            visitors = await self._distinct_count(
                project_id, period, TrackingEvent.visitor_id, PAGE_VIEW
            )
            conversions = await self._distinct_count(
                project_id, period, TrackingEvent.visitor_id, CONVERSION
            )
            counts.append((conversions, visitors))
            rates.append(conversions / visitors * 100 if visitors else 0.0)

        conversions, visitors = counts[0]
        return ConversionRate(
            conversions=conversions,
            visitors=visitors,
            conversion_rate=metrics.metric_result(rates[0], rates[1]),
        )

    async def get_global_reach(
        self, project_id: int, from_: str | None = None, to: str | None = None
    ) -> GlobalReach:
        """Number of distinct visitor countries, against the previous period."""
        periods = periods_or_400(from_, to)
        current = await self._distinct_count(
            project_id, periods.current, TrackingEvent.country, PAGE_VIEW
        )
        previous = await self._distinct_count(
            project_id, periods.previous, TrackingEvent.country, PAGE_VIEW
        )
        return GlobalReach(countries=metrics.metric_result(current, previous, rounded=False))

    async def get_breakdown(
        self,
        project_id: int,
        column: InstrumentedAttribute[Any],
        from_: str | None = None,
        to: str | None = None,
        limit: int | None = None,
    ) -> BreakdownResponse:
        """Page views grouped by ``column`` for the current window.

        With ``limit`` the tail beyond the top ``limit`` values is reported as
        a single ``Other`` bucket.
        """
        current = periods_or_400(from_, to).current
        result = await self._execute(
            select(column, func.count())
            .where(
                *self._scope(project_id, current),
                TrackingEvent.event_type == PAGE_VIEW,
                column.isnot(None),
            )
            .group_by(column)
        )
        counts = [(row[0], row[1]) for row in result.all()]
        total = sum(count for _, count in counts)

        if limit is not None:
            ranked = metrics.top_n_with_other(counts, limit)
        else:
            ranked = sorted(counts, key=lambda item: (-item[1], item[0]))

        return BreakdownResponse(
            data=[
                BreakdownItem(name=name, count=count, percentage=metrics.share(count, total))
                for name, count in ranked
            ]
        )

    async def get_device_types(
        self, project_id: int, from_: str | None = None, to: str | None = None
    ) -> BreakdownResponse:
        return await self.get_breakdown(project_id, TrackingEvent.device, from_, to)

    async def get_top_locations(
        self,
        project_id: int,
        from_: str | None = None,
        to: str | None = None,
        limit: int = 5,
    ) -> BreakdownResponse:
        return await self.get_breakdown(project_id, TrackingEvent.country, from_, to, limit)

    async def get_browsers(
        self,
        project_id: int,
        from_: str | None = None,
        to: str | None = None,
        limit: int = 5,
    ) -> BreakdownResponse:
        return await self.get_breakdown(project_id, TrackingEvent.browser, from_, to, limit)
