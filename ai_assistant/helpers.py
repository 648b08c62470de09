"""AI helpers built on the text generator: task ideas, summaries, reminders,
task analysis and text improvement.

The suggestion helpers degrade to a default value when generation fails.
"""
from __future__ import annotations

import json
import logging
import typing as t

from ai_assistant.client import AIStream, TextGenerator
from prompts import load_prompt
from workspace.models import Task

logger = logging.getLogger(__name__)

MAX_TASKS_IN_PROMPT = 10
SUMMARY_MIN_LENGTH = 200
REMINDER_MAX_TOKENS = 100
DEFAULT_REMINDER = "Consider setting a reminder before the deadline"
MIN_TASKS_FOR_ANALYSIS = 5


def generate_task_recommendations(generator: TextGenerator, tasks: t.Sequence[Task]) -> list[str]:
    """Suggest related tasks, one per line of the model's reply; [] on failure."""
    tasks_text = "\n".join(
        f"- {task.text} ({'Completed' if task.completed else 'Pending'})"
        for task in tasks[:MAX_TASKS_IN_PROMPT]
    )
    try:
        response = generator.generate(load_prompt("task_recommendations", tasks=tasks_text))
    except RuntimeError as e:
        logger.warning(f"Error generating task recommendations: {e}")
        return []
    return [line.strip() for line in response.split("\n") if line.strip()]


def generate_text_summary(generator: TextGenerator, content: str, max_length: int = 150) -> str:
    """Summarize long content; short content is returned unchanged."""
    if not content or len(content.strip()) < SUMMARY_MIN_LENGTH:
        return content
    try:
        return generator.generate(
            load_prompt("text_summary", content=content, max_length=max_length)
        )
    except RuntimeError as e:
        logger.warning(f"Error generating text summary: {e}")
        return content[:max_length] + "..."


def generate_reminder_suggestion(generator: TextGenerator, task: Task) -> str:
    prompt = load_prompt(
        "reminder_suggestion",
        text=task.text,
        priority=task.priority or "not specified",
        deadline=str(task.due_date) if task.due_date else "not specified",
    )
    try:
        return generator.generate(prompt, max_tokens=REMINDER_MAX_TOKENS)
    except RuntimeError as e:
        logger.warning(f"Error generating reminder suggestion: {e}")
        return DEFAULT_REMINDER


def generate_task_analysis(generator: TextGenerator, tasks: t.Sequence[Task]) -> str:
    """Ask for productivity insights over the whole task list.

    Unlike the other helpers there is no fallback text: a failed call raises
    RuntimeError so the caller can report that the analysis did not run.

    Raises:
        ValueError: With fewer than MIN_TASKS_FOR_ANALYSIS tasks.
        RuntimeError: If generation fails.
    """
    if len(tasks) < MIN_TASKS_FOR_ANALYSIS:
        raise ValueError(f"You need at least {MIN_TASKS_FOR_ANALYSIS} tasks for a meaningful analysis")

    task_data = [
        {
            "text": task.text,
            "completed": task.completed,
            "priority": task.priority or "none",
            "dueDate": str(task.due_date) if task.due_date else "unspecified",
            "category": task.category,
        }
        for task in tasks
    ]
    return generator.generate(load_prompt("task_analysis", task_data=json.dumps(task_data, indent=2)))


def improve_text(
    stream: AIStream,
    text: str,
    on_chunk: t.Optional[t.Callable[[str], None]] = None,
) -> bool:
    """Stream a clearer, more professional rewrite of ``text`` into ``stream``."""
    if not text.strip():
        raise ValueError("Please provide some text to improve")
    stream.reset()
    return stream.run(load_prompt("improve_text", text=text), on_chunk=on_chunk)
