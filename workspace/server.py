# -*- coding: utf-8 -*-
"""MCP tool server exposing the workspace calendar and task board.

The tools operate on an explicit ``AppState``; ``build_server`` registers the
bound methods of ``WorkspaceTools`` with a FastMCP instance.
"""
from __future__ import annotations

import typing as t

from fastmcp import FastMCP

from calendar_view.layout import format_event_time
from workspace.app import AppState
from workspace.models import EventType, Priority, event_to_dict, task_to_dict
from workspace.store import mirror_task_to_calendar


class WorkspaceTools:
    """Tool implementations over one workspace session."""

    def __init__(self, state: AppState) -> None:
        self.state = state

    def create_calendar_event(
            self,
            title: str,
            date: str,
            start_time: str = "",
            end_time: str = "",
            type: EventType = "other",
            description: str = "",
            priority: t.Optional[Priority] = None,
    ) -> dict[str, t.Any]:
        """Creates a calendar event.

        :param title: Title of the event.
        :param date: Day of the event, YYYY-MM-DD.
        :param start_time: Start time as HH:MM, 24-hour (optional).
        :param end_time: End time as HH:MM, 24-hour (optional).
        :param type: One of meeting, task, personal, other.
        :param description: Free-text description (optional).
        :param priority: high, medium or low (optional).
        :return: The created event.
        :raises ValueError: For a blank title, an invalid date or time, or an
            unknown type or priority.
        """
        if not title.strip():
            raise ValueError("Please enter an event title")
        event = self.state.events.add_event(
            title,
            date,
            start_time=start_time or None,
            end_time=end_time or None,
            type=type,
            description=description or None,
            priority=priority or None,
        )
        return event_to_dict(event)

    def update_calendar_event(self, event_id: str, fields: dict[str, t.Any]) -> t.Optional[dict[str, t.Any]]:
        """Updates fields of an existing calendar event.

        :param event_id: Id of the event.
        :param fields: Fields to merge into the event.
        :return: The updated event, or null if no event has that id.
        """
        event = self.state.events.update_event(event_id, **fields)
        return event_to_dict(event) if event else None

    def delete_calendar_event(self, event_id: str) -> bool:
        """Deletes a calendar event.

        :param event_id: Id of the event.
        :return: True if an event was removed.
        """
        return self.state.events.delete_event(event_id)

    def list_calendar_events(self, start: str = "", end: str = "") -> list[dict[str, t.Any]]:
        """Lists calendar events, optionally limited to a date range.

        :param start: First day, YYYY-MM-DD (optional).
        :param end: Last day, YYYY-MM-DD (optional, defaults to start).
        :return: A list of event dictionaries.
        """
        if start:
            events = self.state.events.get_events_in_range(start, end or start)
        else:
            events = self.state.events.events
        return [event_to_dict(event) for event in events]

    def show_calendar_events(self) -> str:
        """Displays all calendar events in a formatted table.

        :return: Formatted table of all events, or a message if none exist.
        """
        return format_calendar_events(self.state)

    def create_task(
            self,
            text: str,
            category: str = "pending",
            due_date: str = "",
            priority: t.Optional[Priority] = None,
    ) -> dict[str, t.Any]:
        """Adds a task to the task board.

        :param text: Task text.
        :param category: Category bucket such as pending, received, assigned.
        :param due_date: Due date, YYYY-MM-DD (optional).
        :param priority: high, medium or low (optional).
        :return: The created task.
        """
        if not text.strip():
            raise ValueError("Please enter a task")
        task = self.state.tasks.add_task(
            text,
            category=category,
            due_date=due_date or None,
            priority=priority or None,
        )
        return task_to_dict(task)

    def toggle_task(self, task_id: str) -> t.Optional[dict[str, t.Any]]:
        """Toggles a task between completed and pending.

        :param task_id: Id of the task.
        :return: The updated task, or null if no task has that id.
        """
        task = self.state.tasks.toggle_task_completion(task_id)
        return task_to_dict(task) if task else None

    def list_tasks(self) -> list[dict[str, t.Any]]:
        """Lists all tasks, newest first."""
        return [task_to_dict(task) for task in self.state.tasks.tasks]

    def task_stats(self) -> dict[str, int]:
        """Returns dashboard counters for the task board."""
        return self.state.tasks.get_task_stats().as_dict()

    def mirror_task_to_calendar(self, task_id: str) -> t.Optional[dict[str, t.Any]]:
        """Copies a task with a due date onto the calendar.

        :param task_id: Id of the task.
        :return: The created event, or null if the task is unknown or has no due date.
        """
        event = mirror_task_to_calendar(self.state.tasks, self.state.events, task_id)
        return event_to_dict(event) if event else None


def format_calendar_events(state: AppState) -> str:
    """Format calendar events as a clean table."""
    events = state.events.events
    if not events:
        return "📅 No calendar events found."

    lines = []
    lines.append("📅 CALENDAR EVENTS")
    lines.append("=" * 100)
    lines.append(f"{'#':<4} {'Title':<35} {'Date':<12} {'Time':<15} {'Type':<10} {'Id':<20}")
    lines.append("-" * 100)

    for idx, event in enumerate(events, 1):
        title = event.title[:34] if len(event.title) > 34 else event.title
        time_range = format_event_time(event.start_time, event.end_time) or "—"
        lines.append(
            f"{idx:<4} {title:<35} {str(event.date):<12} {time_range:<15} {event.type:<10} {event.id:<20}"
        )

    lines.append("=" * 100)
    lines.append(f"Total: {len(events)} event(s)")
    return "\n".join(lines)


def build_server(state: AppState) -> FastMCP:
    """Create a FastMCP server whose tools act on ``state``."""
    mcp = FastMCP("IntegralWorkspace")
    tools = WorkspaceTools(state)
    for tool in (
        tools.create_calendar_event,
        tools.update_calendar_event,
        tools.delete_calendar_event,
        tools.list_calendar_events,
        tools.show_calendar_events,
        tools.create_task,
        tools.toggle_task,
        tools.list_tasks,
        tools.task_stats,
        tools.mirror_task_to_calendar,
    ):
        mcp.tool()(tool)
    return mcp
