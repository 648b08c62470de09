"""Event layout: time ranges to pixel boxes, month-cell overflow and filtering."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import typing as t

from workspace import models
from workspace.models import CalendarEvent

logger = logging.getLogger(__name__)

PIXELS_PER_HOUR = 60
MONTH_CELL_LIMIT = 3
MONTH_CELL_LIMIT_NARROW = 2

EVENT_COLORS = {
    "meeting": "blue",
    "task": "green",
    "personal": "purple",
    "other": "dark_orange",  # amber
}
DEFAULT_EVENT_COLOR = "grey50"


@dataclass(frozen=True)
class EventBox:
    top: float
    height: float


@dataclass(frozen=True)
class PositionedEvent:
    event: CalendarEvent
    box: EventBox
    color: str


@dataclass
class MonthCellEvents:
    """Events shown in one month cell plus the hidden remainder."""
    visible: list[CalendarEvent] = field(default_factory=list)
    overflow: int = 0

    @property
    def overflow_label(self) -> str:
        return f"+{self.overflow} more" if self.overflow > 0 else ""


def parse_time(value: str) -> float:
    """Convert "HH:MM" to fractional hours (e.g. "09:30" -> 9.5)."""
    hours, minutes = models.parse_time(value)
    return hours + minutes / 60


def event_box(start_time: str, end_time: str) -> EventBox:
    """Vertical placement at 60px per hour: 09:00-10:30 -> top 540, height 90."""
    start = parse_time(start_time)
    end = parse_time(end_time)
    return EventBox(top=start * PIXELS_PER_HOUR, height=(end - start) * PIXELS_PER_HOUR)


def event_color(event_type: str) -> str:
    return EVENT_COLORS.get(event_type, DEFAULT_EVENT_COLOR)


def layout_day(events: t.Iterable[CalendarEvent]) -> list[PositionedEvent]:
    """Position the timed events of one day column, keeping insertion order.

    Events without both a start and an end time have no place on the
    timeline and are dropped, as are events whose times cannot be parsed.
    """
    placed = []
    for event in events:
        if not event.is_timed:
            continue
        try:
            box = event_box(event.start_time, event.end_time)
        except ValueError as e:
            logger.warning(f"Skipping event {event.id} with unreadable times: {e}")
            continue
        placed.append(PositionedEvent(event, box, event_color(event.type)))
    return placed


def month_cell(events: t.Sequence[CalendarEvent], narrow: bool = False) -> MonthCellEvents:
    limit = MONTH_CELL_LIMIT_NARROW if narrow else MONTH_CELL_LIMIT
    return MonthCellEvents(
        visible=list(events[:limit]),
        overflow=max(0, len(events) - limit),
    )


def current_time_offset(now: t.Optional[datetime] = None) -> int:
    """Pixel offset of the current-time marker (minute of the day).

    Evaluated when called; the marker only moves when the view is rendered again.
    """
    now = now or datetime.now()
    return now.hour * PIXELS_PER_HOUR + now.minute


def filter_events(
    events: t.Iterable[CalendarEvent],
    query: str = "",
    show_tasks: bool = True,
) -> list[CalendarEvent]:
    """Apply the search query and the task-visibility toggle (both must pass)."""
    needle = query.lower() if query.strip() else ""
    filtered = []
    for event in events:
        if needle:
            haystacks = [event.title.lower(), (event.description or "").lower()]
            if not any(needle in text for text in haystacks):
                continue
        if not show_tasks and event.type == "task":
            continue
        filtered.append(event)
    return filtered


def format_event_time(start_time: t.Optional[str], end_time: t.Optional[str]) -> str:
    if not start_time or not end_time:
        return ""
    return f"{start_time} - {end_time}"
