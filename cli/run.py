# -*- coding: utf-8 -*-
"""Command line surface for the Integral workspace."""
import logging
import typing as t

import click
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from ai_assistant.client import AIStream, TextGenerator
from ai_assistant.helpers import (
    MIN_TASKS_FOR_ANALYSIS,
    generate_reminder_suggestion,
    generate_task_analysis,
    generate_task_recommendations,
    generate_text_summary,
    improve_text,
)
from auth_service.service import AuthenticationError
from calendar_view.grid import VIEW_MODES
from cli.render import (
    console,
    render_recommendations,
    render_stats,
    render_tasks,
    render_view,
)
from workspace.app import open_workspace
from workspace.models import EVENT_TYPES, PRIORITIES, DateKey, check_time
from workspace.server import build_server, format_calendar_events
from workspace.store import TASK_FILTERS, filter_tasks, mirror_task_to_calendar
from weather_service.client import Location, WeatherClient, resolve_location


def _fail(message: str) -> t.NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(1)


def _parse_date(value: t.Optional[str], label: str = "date") -> t.Optional[DateKey]:
    if value is None:
        return None
    try:
        return DateKey.parse(value)
    except ValueError:
        _fail(f"Please select a valid {label} (YYYY-MM-DD), got {value!r}")


def _check_time(value: t.Optional[str]) -> t.Optional[str]:
    try:
        return check_time(value)
    except ValueError:
        _fail(f"Times must be HH:MM (24-hour), got {value!r}")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--data-dir", envvar="INTEGRAL_DATA_DIR", type=click.Path(file_okay=False),
              default=None, help="Directory holding workspace data.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, data_dir: t.Optional[str], verbose: bool) -> None:
    """Integral: calendar, task board and AI helpers in the terminal."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = {"data_dir": data_dir}


# -- calendar ---------------------------------------------------------------

@main.command("calendar")
@click.option("--view", "view_mode", type=click.Choice(VIEW_MODES), default="week", show_default=True)
@click.option("--date", "date_str", default=None, help="Reference date, YYYY-MM-DD (default: today).")
@click.option("--search", default="", help="Only show events whose title or description matches.")
@click.option("--hide-tasks", is_flag=True, help="Hide events of type task.")
@click.option("--narrow", is_flag=True, help="Compact month cells (2 events each).")
@click.option("--prev", "steps_back", count=True, help="Step back one period (repeatable).")
@click.option("--next", "steps_forward", count=True, help="Step forward one period (repeatable).")
@click.pass_obj
def calendar_cmd(obj: dict, view_mode: str, date_str: t.Optional[str], search: str,
                 hide_tasks: bool, narrow: bool, steps_back: int, steps_forward: int) -> None:
    """Show the calendar in day, week or month view."""
    reference = _parse_date(date_str)
    with open_workspace(obj["data_dir"]) as state:
        controller = state.calendar
        controller.set_view(view_mode)
        if reference:
            controller.select_date(reference)
        controller.set_search(search)
        controller.set_show_tasks(not hide_tasks)
        controller.set_narrow(narrow)
        for _ in range(steps_back):
            controller.previous()
        for _ in range(steps_forward):
            controller.next()
        console.print(render_view(controller.render()))


# -- events -----------------------------------------------------------------

@main.group()
def event() -> None:
    """Create, update, delete and list calendar events."""


@event.command("add")
@click.argument("title")
@click.option("--date", "date_str", required=True, help="Day of the event, YYYY-MM-DD.")
@click.option("--start", "start_time", default=None, help="Start time, HH:MM.")
@click.option("--end", "end_time", default=None, help="End time, HH:MM.")
@click.option("--type", "event_type", type=click.Choice(EVENT_TYPES), default="other", show_default=True)
@click.option("--description", default=None)
@click.option("--priority", type=click.Choice(PRIORITIES), default=None)
@click.pass_obj
def event_add(obj: dict, title: str, date_str: str, start_time: t.Optional[str], end_time: t.Optional[str],
              event_type: str, description: t.Optional[str], priority: t.Optional[str]) -> None:
    """Add an event to the calendar."""
    if not title.strip():
        _fail("Please enter an event title")
    day = _parse_date(date_str)
    with open_workspace(obj["data_dir"]) as state:
        created = state.events.add_event(
            title,
            day,
            start_time=_check_time(start_time),
            end_time=_check_time(end_time),
            type=event_type,
            description=description,
            priority=priority,
        )
    console.print(f"[green]✓ Event Added:[/green] {created.title} on {created.date} [dim]({created.id})[/dim]")


@event.command("update")
@click.argument("event_id")
@click.option("--title", default=None)
@click.option("--date", "date_str", default=None)
@click.option("--start", "start_time", default=None)
@click.option("--end", "end_time", default=None)
@click.option("--type", "event_type", type=click.Choice(EVENT_TYPES), default=None)
@click.option("--description", default=None)
@click.option("--completed/--not-completed", default=None)
@click.pass_obj
def event_update(obj: dict, event_id: str, title: t.Optional[str], date_str: t.Optional[str],
                 start_time: t.Optional[str], end_time: t.Optional[str], event_type: t.Optional[str],
                 description: t.Optional[str], completed: t.Optional[bool]) -> None:
    """Update fields of an event."""
    if title is not None and not title.strip():
        _fail("Please enter an event title")
    fields = {
        "title": title,
        "date": _parse_date(date_str),
        "start_time": _check_time(start_time),
        "end_time": _check_time(end_time),
        "type": event_type,
        "description": description,
        "completed": completed,
    }
    fields = {name: value for name, value in fields.items() if value is not None}
    with open_workspace(obj["data_dir"]) as state:
        updated = state.events.update_event(event_id, **fields)
    if updated is None:
        console.print(f"[yellow]No event with id {event_id}[/yellow]")
    else:
        console.print(f"[green]✓ Event Updated:[/green] {updated.title}")


@event.command("delete")
@click.argument("event_id")
@click.pass_obj
def event_delete(obj: dict, event_id: str) -> None:
    """Delete an event (deleting an unknown id does nothing)."""
    with open_workspace(obj["data_dir"]) as state:
        removed = state.events.get_event(event_id)
        state.events.delete_event(event_id)
    label = f'"{removed.title}" has been removed' if removed else "Event has been removed"
    console.print(f"[green]✓ Event Deleted:[/green] {label}")


@event.command("list")
@click.pass_obj
def event_list(obj: dict) -> None:
    """List every event."""
    with open_workspace(obj["data_dir"]) as state:
        console.print(format_calendar_events(state))


# -- tasks ------------------------------------------------------------------

@main.group()
def task() -> None:
    """Manage the task board."""


@task.command("add")
@click.argument("text")
@click.option("--category", default="pending", show_default=True)
@click.option("--due", "due_str", default=None, help="Due date, YYYY-MM-DD.")
@click.option("--priority", type=click.Choice(PRIORITIES), default=None)
@click.option("--calendar", "add_to_calendar", is_flag=True, help="Also put the task on the calendar.")
@click.pass_obj
def task_add(obj: dict, text: str, category: str, due_str: t.Optional[str],
             priority: t.Optional[str], add_to_calendar: bool) -> None:
    """Add a task."""
    if not text.strip():
        _fail("Please enter a task")
    due = _parse_date(due_str, "due date")
    with open_workspace(obj["data_dir"]) as state:
        created = state.tasks.add_task(text, category=category, due_date=due, priority=priority)
        console.print(f"[green]✓ Task added:[/green] {created.text} [dim]({created.id})[/dim]")
        if add_to_calendar:
            mirrored = mirror_task_to_calendar(state.tasks, state.events, created.id)
            if mirrored:
                console.print(f"[green]✓ Added to Calendar:[/green] on {mirrored.date}")
            else:
                console.print("[yellow]No due date, so the task was not added to the calendar[/yellow]")


@task.command("toggle")
@click.argument("task_id")
@click.pass_obj
def task_toggle(obj: dict, task_id: str) -> None:
    """Mark a task completed, or pending again."""
    with open_workspace(obj["data_dir"]) as state:
        updated = state.tasks.toggle_task_completion(task_id)
    if updated is None:
        console.print(f"[yellow]No task with id {task_id}[/yellow]")
    else:
        status = "Task Completed" if updated.completed else "Task Marked as Pending"
        console.print(f"[green]✓ {status}:[/green] {updated.text}")


@task.command("delete")
@click.argument("task_id")
@click.pass_obj
def task_delete(obj: dict, task_id: str) -> None:
    """Delete a task."""
    with open_workspace(obj["data_dir"]) as state:
        state.tasks.delete_task(task_id)
    console.print("[green]✓ Task deleted[/green]")


@task.command("list")
@click.option("--category", default=None, help="Only show this category.")
@click.option("--filter", "status_filter", type=click.Choice(TASK_FILTERS), default="all", show_default=True,
              help="Filter by status or priority.")
@click.pass_obj
def task_list(obj: dict, category: t.Optional[str], status_filter: str) -> None:
    """List tasks, newest first."""
    with open_workspace(obj["data_dir"]) as state:
        tasks = filter_tasks(state.tasks.tasks, status_filter)
    if category:
        tasks = [item for item in tasks if item.category == category]
    console.print(render_tasks(tasks))


@task.command("stats")
@click.pass_obj
def task_stats(obj: dict) -> None:
    """Show dashboard counters."""
    with open_workspace(obj["data_dir"]) as state:
        console.print(render_stats(state.tasks.get_task_stats()))


@task.command("mirror")
@click.argument("task_id")
@click.pass_obj
def task_mirror(obj: dict, task_id: str) -> None:
    """Copy a task with a due date onto the calendar (one-way)."""
    with open_workspace(obj["data_dir"]) as state:
        mirrored = mirror_task_to_calendar(state.tasks, state.events, task_id)
    if mirrored is None:
        _fail("This task doesn't exist or has no due date to put on the calendar")
    console.print(f"[green]✓ Added to Calendar:[/green] {mirrored.title} on {mirrored.date}")


# -- AI ---------------------------------------------------------------------

@main.group()
def ai() -> None:
    """AI writing and planning helpers."""


@ai.command("ask")
@click.argument("prompt")
@click.option("--system", "system_prompt", default=None, help="Override the system prompt.")
@click.option("--stream/--no-stream", default=True, show_default=True)
def ai_ask(prompt: str, system_prompt: t.Optional[str], stream: bool) -> None:
    """Send a prompt to the language model."""
    generator = TextGenerator()
    if stream:
        ai_stream = AIStream(generator)
        ok = ai_stream.run(prompt, system_prompt, on_chunk=lambda delta: console.print(delta, end=""))
        console.print()
        if not ok:
            _fail(ai_stream.error or "Streaming failed")
        return

    with console.status("[bold green]Thinking..."):
        try:
            text = generator.generate(prompt, system_prompt)
        except RuntimeError as e:
            _fail(str(e))
    console.print(text)


@ai.command("suggest")
@click.pass_obj
def ai_suggest(obj: dict) -> None:
    """Suggest tasks related to the current board."""
    with open_workspace(obj["data_dir"]) as state:
        tasks = state.tasks.tasks
    with console.status("[bold green]Generating recommendations..."):
        suggestions = generate_task_recommendations(TextGenerator(), tasks)
    console.print(render_recommendations(suggestions))


@ai.command("summarize")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--max-length", default=150, show_default=True)
def ai_summarize(source: t.TextIO, max_length: int) -> None:
    """Summarize a text file ("-" for stdin)."""
    content = source.read()
    with console.status("[bold green]Summarizing..."):
        summary = generate_text_summary(TextGenerator(), content, max_length=max_length)
    console.print(Panel(summary, title="📝 Summary", border_style="blue"))


@ai.command("analyze")
@click.pass_obj
def ai_analyze(obj: dict) -> None:
    """Analyze productivity patterns across the task board."""
    with open_workspace(obj["data_dir"]) as state:
        tasks = state.tasks.tasks
    if len(tasks) < MIN_TASKS_FOR_ANALYSIS:
        _fail(f"You need at least {MIN_TASKS_FOR_ANALYSIS} tasks for a meaningful analysis")
    with console.status("[bold green]Analyzing tasks..."):
        try:
            analysis = generate_task_analysis(TextGenerator(), tasks)
        except RuntimeError as e:
            _fail(f"Could not complete the task analysis: {e}")
    console.print(Panel(analysis, title="🧠 Task Analysis", border_style="blue"))


@ai.command("improve")
@click.argument("text")
def ai_improve(text: str) -> None:
    """Rewrite TEXT to be clearer and more professional (streamed)."""
    if not text.strip():
        _fail("Please provide some text to improve")
    ai_stream = AIStream(TextGenerator())
    ok = improve_text(ai_stream, text, on_chunk=lambda delta: console.print(delta, end=""))
    console.print()
    if not ok:
        _fail(ai_stream.error or "Streaming failed")


@ai.command("remind")
@click.argument("task_id")
@click.pass_obj
def ai_remind(obj: dict, task_id: str) -> None:
    """Suggest a reminder time for a task."""
    with open_workspace(obj["data_dir"]) as state:
        found = state.tasks.get_task(task_id)
    if found is None:
        _fail(f"No task with id {task_id}")
    with console.status("[bold green]Thinking..."):
        suggestion = generate_reminder_suggestion(TextGenerator(), found)
    console.print(f"⏰ {suggestion}")


# -- account ----------------------------------------------------------------

@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--remember/--no-remember", default=True, show_default=True,
              help="Stay logged in for later commands; without it the login only lasts for this command.")
@click.pass_obj
def login(obj: dict, email: str, password: str, remember: bool) -> None:
    """Log in."""
    with open_workspace(obj["data_dir"]) as state:
        try:
            user = state.auth.login(email, password, remember=remember)
        except AuthenticationError as e:
            _fail(str(e))
    console.print(f"[green]Welcome back, {user.name}![/green]")


@main.command()
@click.option("--name", prompt=True)
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_obj
def signup(obj: dict, name: str, email: str, password: str) -> None:
    """Create an account and log in."""
    with open_workspace(obj["data_dir"]) as state:
        try:
            user = state.auth.signup(name, email, password)
        except AuthenticationError as e:
            _fail(str(e))
    console.print(f"[green]Account created. Welcome, {user.name}![/green]")


@main.command()
@click.pass_obj
def logout(obj: dict) -> None:
    """Log out."""
    with open_workspace(obj["data_dir"]) as state:
        state.auth.logout()
    console.print("[green]Logged out[/green] You have been successfully logged out")


@main.command()
@click.pass_obj
def whoami(obj: dict) -> None:
    """Show the remembered user."""
    with open_workspace(obj["data_dir"]) as state:
        user = state.auth.user
    if user is None:
        console.print("[dim]Not logged in[/dim]")
    else:
        console.print(f"{user.name} <{user.email}>")


# -- weather ----------------------------------------------------------------

@main.command()
@click.option("--lat", type=float, default=None, help="Latitude (default: San Francisco).")
@click.option("--lon", type=float, default=None, help="Longitude.")
def weather(lat: t.Optional[float], lon: t.Optional[float]) -> None:
    """Show current weather."""
    locator = (lambda: Location(lat, lon)) if lat is not None and lon is not None else None
    location = resolve_location(locator)
    with WeatherClient() as client:
        try:
            report = client.fetch_weather(location)
        except RuntimeError as e:
            _fail(str(e))

    text = Text()
    text.append(f"{report.place}\n", style="bold")
    text.append(f"{report.condition}, {report.temperature}°C (feels like {report.apparent_temperature}°C)\n")
    text.append(f"Humidity {report.humidity}%  Wind {report.wind_speed} km/h", style="dim")
    console.print(Panel(text, title="🌤 Weather", border_style="cyan", expand=False))


# -- tool server ------------------------------------------------------------

@main.command()
@click.pass_obj
def serve(obj: dict) -> None:
    """Run the workspace MCP tool server over stdio."""
    with open_workspace(obj["data_dir"]) as state:
        build_server(state).run()


if __name__ == "__main__":
    main()
