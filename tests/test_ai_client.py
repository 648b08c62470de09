"""Tests for the AI text generator, rate limiter, stream state and helpers."""
from types import SimpleNamespace

import pytest

from ai_assistant.client import (
    DEFAULT_SYSTEM_PROMPT,
    GENERATION_ERROR,
    STREAM_ERROR,
    AIStream,
    RateLimiter,
    TextGenerator,
)
from ai_assistant.helpers import (
    DEFAULT_REMINDER,
    MIN_TASKS_FOR_ANALYSIS,
    generate_reminder_suggestion,
    generate_task_analysis,
    generate_task_recommendations,
    generate_text_summary,
    improve_text,
)
from workspace.models import DateKey, Task


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCompletions:
    """Stands in for ``client.chat.completions``."""

    def __init__(self, reply: str = "", chunks=(), error: Exception = None) -> None:
        self.reply = reply
        self.chunks = list(chunks)
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            return iter(self._stream())
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    def _stream(self):
        for piece in self.chunks:
            if isinstance(piece, Exception):
                raise piece
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=piece))])


def _generator(completions: FakeCompletions) -> TextGenerator:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    limiter = RateLimiter(min_interval=0.0)
    return TextGenerator(client=client, model="test-model", rate_limiter=limiter)


# -- rate limiter -------------------------------------------------------------

def test_rate_limiter_spaces_calls_by_delaying() -> None:
    clock = FakeClock()
    limiter = RateLimiter(min_interval=2.0, clock=clock, sleep=clock.sleep)

    assert limiter.wait() == 0.0
    clock.now += 0.5
    assert limiter.wait() == pytest.approx(1.5)
    assert clock.sleeps == [pytest.approx(1.5)]

    clock.now += 3.0
    assert limiter.wait() == 0.0
    assert len(clock.sleeps) == 1


def test_rate_limiter_applies_to_generate() -> None:
    clock = FakeClock()
    completions = FakeCompletions(reply="hi")
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    generator = TextGenerator(client=client, rate_limiter=RateLimiter(2.0, clock=clock, sleep=clock.sleep))

    generator.generate("one")
    generator.generate("two")
    assert clock.sleeps == [pytest.approx(2.0)]
    assert len(completions.calls) == 2


# -- generator ----------------------------------------------------------------

def test_generate_sends_system_and_user_messages() -> None:
    completions = FakeCompletions(reply="Sure thing")
    generator = _generator(completions)

    assert generator.generate("Plan my day", max_tokens=42) == "Sure thing"
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["max_tokens"] == 42
    assert call["messages"] == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
        {"role": "user", "content": "Plan my day"},
    ]


def test_generate_uses_custom_system_prompt() -> None:
    completions = FakeCompletions(reply="ok")
    _generator(completions).generate("x", system_prompt="Be brief.")
    assert completions.calls[0]["messages"][0]["content"] == "Be brief."


def test_generate_failure_raises_generic_error() -> None:
    generator = _generator(FakeCompletions(error=ConnectionError("offline")))
    with pytest.raises(RuntimeError, match=GENERATION_ERROR):
        generator.generate("x")


def test_stream_generate_yields_deltas_and_skips_empty() -> None:
    generator = _generator(FakeCompletions(chunks=["Hel", None, "lo", ""]))
    assert list(generator.stream_generate("x")) == ["Hel", "lo"]


def test_stream_failure_mid_way_raises() -> None:
    generator = _generator(FakeCompletions(chunks=["partial", ConnectionError("dropped")]))
    stream = generator.stream_generate("x")
    assert next(stream) == "partial"
    with pytest.raises(RuntimeError, match=STREAM_ERROR):
        next(stream)


# -- stream state -------------------------------------------------------------

def test_ai_stream_accumulates_content() -> None:
    seen: list[str] = []
    stream = AIStream(_generator(FakeCompletions(chunks=["a", "b", "c"])))

    assert stream.run("x", on_chunk=seen.append) is True
    assert stream.content == "abc"
    assert seen == ["a", "b", "c"]
    assert stream.is_loading is False
    assert stream.error is None


def test_ai_stream_records_error_and_keeps_partial_content() -> None:
    stream = AIStream(_generator(FakeCompletions(chunks=["par", ConnectionError("dropped")])))

    assert stream.run("x") is False
    assert stream.content == "par"
    assert stream.error == STREAM_ERROR
    assert stream.is_loading is False

    stream.reset()
    assert stream.content == ""
    assert stream.error is None


# -- helpers ------------------------------------------------------------------

def test_task_recommendations_split_lines_and_cap_prompt() -> None:
    completions = FakeCompletions(reply="Book a room\n\n  Draft agenda  \n")
    tasks = [Task(f"t{i}", f"Task number {i}", completed=(i == 0)) for i in range(12)]

    assert generate_task_recommendations(_generator(completions), tasks) == ["Book a room", "Draft agenda"]
    prompt = completions.calls[0]["messages"][1]["content"]
    assert "- Task number 0 (Completed)" in prompt
    assert "- Task number 9 (Pending)" in prompt
    assert "Task number 10" not in prompt


def test_task_recommendations_fall_back_to_empty() -> None:
    generator = _generator(FakeCompletions(error=ConnectionError("offline")))
    assert generate_task_recommendations(generator, [Task("t1", "Write report")]) == []


def test_short_content_is_not_summarized() -> None:
    completions = FakeCompletions(reply="summary")
    assert generate_text_summary(_generator(completions), "Short note") == "Short note"
    assert completions.calls == []


def test_long_content_is_summarized_or_truncated() -> None:
    content = "word " * 100
    assert generate_text_summary(_generator(FakeCompletions(reply="summary")), content) == "summary"

    failing = _generator(FakeCompletions(error=ConnectionError("offline")))
    assert generate_text_summary(failing, content, max_length=20) == content[:20] + "..."


def test_reminder_suggestion_uses_task_details() -> None:
    completions = FakeCompletions(reply="Remind me two days before")
    task = Task("t1", "Submit taxes", priority="high", due_date=DateKey(2025, 4, 15))

    assert generate_reminder_suggestion(_generator(completions), task) == "Remind me two days before"
    call = completions.calls[0]
    assert call["max_tokens"] == 100
    assert "Submit taxes" in call["messages"][1]["content"]
    assert "2025-04-15" in call["messages"][1]["content"]


def test_reminder_suggestion_falls_back_to_default() -> None:
    generator = _generator(FakeCompletions(error=ConnectionError("offline")))
    assert generate_reminder_suggestion(generator, Task("t1", "Submit taxes")) == DEFAULT_REMINDER


def test_task_analysis_needs_enough_tasks() -> None:
    completions = FakeCompletions(reply="analysis")
    tasks = [Task(f"t{i}", f"Task {i}") for i in range(MIN_TASKS_FOR_ANALYSIS - 1)]
    with pytest.raises(ValueError, match="at least 5 tasks"):
        generate_task_analysis(_generator(completions), tasks)
    assert completions.calls == []


def test_task_analysis_sends_task_data_as_json() -> None:
    completions = FakeCompletions(reply="You finish high priority work first.")
    tasks = [Task(f"t{i}", f"Task {i}", category="assigned") for i in range(5)]
    tasks[0].priority = "high"
    tasks[0].due_date = DateKey(2025, 3, 20)

    assert generate_task_analysis(_generator(completions), tasks) == "You finish high priority work first."
    prompt = completions.calls[0]["messages"][1]["content"]
    assert '"priority": "high"' in prompt
    assert '"dueDate": "2025-03-20"' in prompt
    assert '"priority": "none"' in prompt
    assert '"dueDate": "unspecified"' in prompt
    assert '"category": "assigned"' in prompt


def test_task_analysis_failure_is_reported() -> None:
    generator = _generator(FakeCompletions(error=ConnectionError("offline")))
    tasks = [Task(f"t{i}", f"Task {i}") for i in range(6)]
    with pytest.raises(RuntimeError):
        generate_task_analysis(generator, tasks)


def test_improve_text_streams_rewrite() -> None:
    completions = FakeCompletions(chunks=["Please send ", "the report."])
    stream = AIStream(_generator(completions))
    stream.content = "left over"
    received: list[str] = []

    assert improve_text(stream, "pls send report", on_chunk=received.append) is True
    assert stream.content == "Please send the report."
    assert received == ["Please send ", "the report."]
    prompt = completions.calls[0]["messages"][1]["content"]
    assert "Improve the following text" in prompt
    assert "pls send report" in prompt


@pytest.mark.parametrize("text", ["", "   "])
def test_improve_text_requires_text(text: str) -> None:
    completions = FakeCompletions(chunks=["unused"])
    with pytest.raises(ValueError, match="Please provide some text to improve"):
        improve_text(AIStream(_generator(completions)), text)
    assert completions.calls == []
