"""Calendar view controller.

Holds the UI state of the calendar (reference date, view mode, sidebar, search
text, task visibility) and derives the month or timeline view model from the
event store. All transitions are synchronous and emit a change notification.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
import typing as t

from calendar_view.grid import (
    HOURS,
    VIEW_MODES,
    MonthCell,
    hour_label,
    month_grid,
    view_title,
    week_grid,
)
from calendar_view.layout import (
    MonthCellEvents,
    PositionedEvent,
    current_time_offset,
    filter_events,
    layout_day,
    month_cell,
)
from workspace.models import CalendarEvent, DateKey, StoreChange
from workspace.store import EventStore, Observable


@dataclass
class MonthViewCell:
    cell: MonthCell
    events: MonthCellEvents


@dataclass
class MonthView:
    title: str
    reference: DateKey
    cells: list[MonthViewCell] = field(default_factory=list)


@dataclass
class DayColumn:
    date: DateKey
    is_today: bool
    is_selected: bool
    events: list[PositionedEvent] = field(default_factory=list)
    untimed: list[CalendarEvent] = field(default_factory=list)


@dataclass
class TimelineView:
    """Day or week view: hour rows plus one positioned column per day."""
    title: str
    view: str
    reference: DateKey
    hour_labels: list[str]
    columns: list[DayColumn]
    current_time_offset: int


class CalendarController(Observable):
    """UI state for the calendar surface."""

    source = "calendar"

    def __init__(
        self,
        events: EventStore,
        reference: t.Optional[DateKey] = None,
        view: str = "week",
        clock: t.Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__()
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view!r}")
        self.events = events
        self._clock = clock
        self.reference = reference or self._today()
        self.view = view
        self.sidebar_open = True
        self.search_query = ""
        self.show_tasks = True
        self.narrow = False

    def _today(self) -> DateKey:
        return DateKey.from_date(self._clock().date())

    def _changed(self, **details: t.Any) -> None:
        self._notify(StoreChange(self.source, "view", details=details))

    # -- transitions -------------------------------------------------------

    def _step(self, direction: int) -> None:
        if self.view == "month":
            self.reference = self.reference.add_months(direction)
        elif self.view == "week":
            self.reference = self.reference.add_days(7 * direction)
        else:
            self.reference = self.reference.add_days(direction)
        self._changed(reference=str(self.reference))

    def previous(self) -> None:
        """Step back one month, week or day depending on the current view."""
        self._step(-1)

    def next(self) -> None:
        """Step forward one month, week or day depending on the current view."""
        self._step(1)

    def today(self) -> None:
        self.reference = self._today()
        self._changed(reference=str(self.reference))

    def select_date(self, day: t.Union[DateKey, date, str]) -> None:
        self.reference = DateKey.coerce(day)
        self._changed(reference=str(self.reference))

    def set_view(self, view: str) -> None:
        """Switch view mode; the reference date is left untouched."""
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view!r}")
        self.view = view
        self._changed(view=view)

    def set_search(self, query: str) -> None:
        self.search_query = query
        self._changed(search_query=query)

    def set_show_tasks(self, show: bool) -> None:
        self.show_tasks = show
        self._changed(show_tasks=show)

    def toggle_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open
        self._changed(sidebar_open=self.sidebar_open)

    def set_narrow(self, narrow: bool) -> None:
        self.narrow = narrow
        self._changed(narrow=narrow)

    # -- derived views -----------------------------------------------------

    @property
    def title(self) -> str:
        return view_title(self.reference, self.view)

    def visible_events(self, day: DateKey) -> list[CalendarEvent]:
        return filter_events(
            self.events.get_events_for_date(day),
            query=self.search_query,
            show_tasks=self.show_tasks,
        )

    def render(self) -> t.Union[MonthView, TimelineView]:
        """Derive the view model for the current state."""
        if self.view == "month":
            return self._render_month()
        return self._render_timeline()

    def _render_month(self) -> MonthView:
        today = self._today()
        cells = [
            MonthViewCell(cell, month_cell(self.visible_events(cell.date), narrow=self.narrow))
            for cell in month_grid(self.reference, today=today)
        ]
        return MonthView(title=self.title, reference=self.reference, cells=cells)

    def _render_timeline(self) -> TimelineView:
        now = self._clock()
        today = DateKey.from_date(now.date())
        days = week_grid(self.reference) if self.view == "week" else [self.reference]

        columns = []
        for day in days:
            visible = self.visible_events(day)
            placed = layout_day(visible)
            placed_ids = {item.event.id for item in placed}
            columns.append(DayColumn(
                date=day,
                is_today=day == today,
                is_selected=day == self.reference,
                events=placed,
                # events without a usable time range are listed above the hours
                untimed=[event for event in visible if event.id not in placed_ids],
            ))

        return TimelineView(
            title=self.title,
            view=self.view,
            reference=self.reference,
            hour_labels=[hour_label(hour) for hour in HOURS],
            columns=columns,
            current_time_offset=current_time_offset(now),
        )
