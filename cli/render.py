"""Rich renderables for calendar views, task lists and weather."""
from __future__ import annotations

import typing as t

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from calendar_view.controller import MonthView, TimelineView
from calendar_view.grid import DAY_ABBR, day_abbr
from calendar_view.layout import PIXELS_PER_HOUR, event_color, format_event_time
from workspace.models import Task, TaskStats

console = Console()

PRIORITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "green"}


def truncate_title(title: str, max_length: int = 24) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length - 3] + "..."


def render_month(view: MonthView) -> Table:
    table = Table(title=f"📅 {view.title}", show_header=True, header_style="bold magenta",
                  show_lines=True, expand=True)
    for name in DAY_ABBR:
        table.add_column(name, ratio=1, vertical="top")

    row: list[Text] = []
    for item in view.cells:
        cell = Text()
        day_style = "bold reverse" if item.cell.is_today else ("dim" if not item.cell.is_current_month else "bold")
        cell.append(f"{item.cell.date.day}\n", style=day_style)
        for event in item.events.visible:
            cell.append(f"■ {truncate_title(event.title, 16)}\n", style=event_color(event.type))
        if item.events.overflow:
            cell.append(item.events.overflow_label, style="italic dim")
        row.append(cell)
        if len(row) == 7:
            table.add_row(*row)
            row = []
    return table


def render_timeline(view: TimelineView) -> Table:
    """One row per hour; each event is listed in the row its top edge falls in."""
    table = Table(title=f"📅 {view.title}", show_header=True, header_style="bold magenta",
                  expand=True)
    table.add_column("", style="dim", width=6, no_wrap=True)
    for column in view.columns:
        header = f"{day_abbr(column.date)} {column.date.day}"
        table.add_column(header, ratio=1,
                         header_style="bold reverse" if column.is_today else "bold magenta")

    untimed = [column.untimed for column in view.columns]
    if any(untimed):
        table.add_row(
            "—",
            *[Text("\n".join(truncate_title(e.title) for e in events), style="dim") for events in untimed],
        )

    now_hour = view.current_time_offset // PIXELS_PER_HOUR
    for hour, label in enumerate(view.hour_labels):
        cells = []
        for column in view.columns:
            cell = Text()
            for placed in column.events:
                if int(placed.box.top // PIXELS_PER_HOUR) == hour:
                    event = placed.event
                    cell.append(
                        f"{format_event_time(event.start_time, event.end_time)} {truncate_title(event.title)}\n",
                        style=placed.color,
                    )
            if column.is_today and hour == now_hour:
                minutes = view.current_time_offset % PIXELS_PER_HOUR
                cell.append(f"── now {hour:02d}:{minutes:02d}", style="bold red")
            cells.append(cell)
        table.add_row(label, *cells)
    return table


def render_view(view: t.Union[MonthView, TimelineView]) -> Table:
    if isinstance(view, MonthView):
        return render_month(view)
    return render_timeline(view)


def render_tasks(tasks: t.Sequence[Task]) -> Table:
    table = Table(title="✅ Tasks", show_header=True, header_style="bold magenta")
    table.add_column("", width=3)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Task", style="white")
    table.add_column("Category", style="blue")
    table.add_column("Due", style="yellow")
    table.add_column("Priority")
    table.add_column("Calendar", style="dim")

    for task in tasks:
        table.add_row(
            "☑" if task.completed else "☐",
            task.id,
            Text(task.text, style="strike dim" if task.completed else ""),
            task.category,
            str(task.due_date) if task.due_date else "—",
            Text(task.priority or "—", style=PRIORITY_STYLES.get(task.priority or "", "")),
            "In Calendar" if task.added_to_calendar else "",
        )
    return table


def render_stats(stats: TaskStats) -> Panel:
    stats_text = Text()
    for label, value in (
        ("Active tasks", stats.active_tasks),
        ("Completed today", stats.completed_today),
        ("Tasks assigned", stats.tasks_assigned),
        ("Tasks received", stats.tasks_received),
    ):
        stats_text.append(f"{label}: ", style="white")
        stats_text.append(f"{value}", style="bold green")
        stats_text.append("\n")
    stats_text.rstrip()
    return Panel(stats_text, title="📊 Statistics", border_style="green", expand=False)


def render_recommendations(suggestions: t.Sequence[str]) -> Panel:
    if not suggestions:
        body: t.Any = Text("No recommendations right now.", style="dim")
    else:
        body = Group(*[Text(f"• {line}") for line in suggestions])
    return Panel(body, title="✨ Suggested tasks", border_style="magenta", expand=False)
