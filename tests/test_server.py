"""Tests for the workspace tool implementations."""
import pytest

from workspace.app import AppState
from workspace.server import WorkspaceTools, build_server, format_calendar_events
from workspace.storage import MemoryStorage


@pytest.fixture
def tools(app_state: AppState) -> WorkspaceTools:
    return WorkspaceTools(app_state)


def test_server_is_named(app_state: AppState) -> None:
    assert build_server(app_state).name == "IntegralWorkspace"


def test_create_and_list_events(tools: WorkspaceTools) -> None:
    created = tools.create_calendar_event("Demo", "2025-03-16", start_time="10:00", end_time="11:00",
                                          type="meeting")
    assert created["date"] == "2025-03-16"
    assert created["start_time"] == "10:00"

    # 2025-03-16 has no seeded event; 2025-03-15 already holds "Team Meeting"
    assert [event["title"] for event in tools.list_calendar_events("2025-03-16")] == ["Demo"]
    assert [event["title"] for event in tools.list_calendar_events("2025-03-15", "2025-03-16")] == [
        "Team Meeting",
        "Demo",
    ]
    # three seeded events plus the new one
    assert len(tools.list_calendar_events()) == 4


def test_create_event_requires_title(tools: WorkspaceTools) -> None:
    with pytest.raises(ValueError, match="Please enter an event title"):
        tools.create_calendar_event("   ", "2025-03-15")


def test_create_event_rejects_invalid_date(tools: WorkspaceTools) -> None:
    with pytest.raises(ValueError):
        tools.create_calendar_event("Demo", "2025-02-30")


def test_unknown_event_type_is_rejected_without_side_effects(tools: WorkspaceTools, app_state: AppState) -> None:
    before = tools.list_calendar_events()
    with pytest.raises(ValueError, match="type"):
        tools.create_calendar_event("Party", "2025-03-15", type="birthday")
    with pytest.raises(ValueError, match="priority"):
        tools.create_calendar_event("Party", "2025-03-15", priority="urgent")
    assert tools.list_calendar_events() == before

    # the store keeps persisting afterwards
    created = tools.create_calendar_event("Party", "2025-03-15", type="personal")
    assert app_state.events.in_memory_only is False
    reloaded = AppState.create(app_state.storage)
    assert reloaded.events.get_event(created["id"]) is not None


def test_malformed_times_are_rejected(tools: WorkspaceTools, app_state: AppState) -> None:
    with pytest.raises(ValueError, match="HH:MM"):
        tools.create_calendar_event("Standup", "2025-03-15", start_time="9am", end_time="10am")

    created = tools.create_calendar_event("Standup", "2025-03-15", start_time="09:00", end_time="09:15")
    with pytest.raises(ValueError):
        tools.update_calendar_event(created["id"], {"end_time": "25:00"})
    assert app_state.events.get_event(created["id"]).end_time == "09:15"

    app_state.calendar.set_view("day")
    app_state.calendar.select_date("2025-03-15")
    titles = [p.event.title for p in app_state.calendar.render().columns[0].events]
    assert "Standup" in titles


def test_task_priority_is_checked(tools: WorkspaceTools) -> None:
    with pytest.raises(ValueError, match="priority"):
        tools.create_task("Write report", priority="asap")
    assert all(task["text"] != "Write report" for task in tools.list_tasks())


def test_update_and_delete_event(tools: WorkspaceTools) -> None:
    created = tools.create_calendar_event("Demo", "2025-03-15")
    updated = tools.update_calendar_event(created["id"], {"title": "Renamed", "completed": True})
    assert updated["title"] == "Renamed"
    assert updated["completed"] is True

    assert tools.update_calendar_event("missing", {"title": "x"}) is None
    assert tools.delete_calendar_event(created["id"]) is True
    assert tools.delete_calendar_event(created["id"]) is False


def test_task_tools(tools: WorkspaceTools) -> None:
    created = tools.create_task("Write report", category="assigned", due_date="2025-03-20", priority="high")
    assert tools.list_tasks()[0]["id"] == created["id"]

    before = tools.task_stats()
    toggled = tools.toggle_task(created["id"])
    assert toggled["completed"] is True
    assert toggled["completed_date"] == "2025-03-15"

    after = tools.task_stats()
    assert after["completedToday"] == before["completedToday"] + 1
    assert after["activeTasks"] == before["activeTasks"] - 1
    assert tools.toggle_task("missing") is None


def test_create_task_requires_text(tools: WorkspaceTools) -> None:
    with pytest.raises(ValueError, match="Please enter a task"):
        tools.create_task("")


def test_mirror_task_tool(tools: WorkspaceTools) -> None:
    created = tools.create_task("Quarterly review", due_date="2025-03-20")
    event = tools.mirror_task_to_calendar(created["id"])
    assert event["type"] == "task"
    assert event["date"] == "2025-03-20"
    assert tools.mirror_task_to_calendar("missing") is None


def test_format_calendar_events() -> None:
    state = AppState.create(MemoryStorage())
    state.events.add_event("Standup", "2025-03-15", start_time="09:00", end_time="09:15")
    table = format_calendar_events(state)
    assert "Standup" in table
    assert "09:00 - 09:15" in table
    assert table.endswith("Total: 4 event(s)")

    for event in state.events.events:
        state.events.delete_event(event.id)
    assert format_calendar_events(state) == "📅 No calendar events found."
