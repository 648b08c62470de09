"""Utility functions for loading AI prompt templates."""
from pathlib import Path
import typing as t


def load_prompt(prompt_name: str, prompts_dir: t.Optional[str] = None, **values: t.Any) -> str:
    """
    Load a prompt template from a text file and fill in its placeholders.

    Args:
        prompt_name: Name of the prompt file (without .txt extension)
        prompts_dir: Optional custom path to prompts directory.
                    Defaults to this module's parent directory.
        **values: Values substituted into ``{placeholders}`` with str.format.
                  When omitted the raw template is returned.

    Returns:
        The prompt text.

    Raises:
        FileNotFoundError: If the prompt file doesn't exist.
        KeyError: If the template needs a value that was not supplied.
    """
    if prompts_dir is None:
        prompts_dir = Path(__file__).resolve().parent

    prompt_file = Path(prompts_dir) / f"{prompt_name}.txt"

    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

    try:
        with open(prompt_file, 'r', encoding='utf-8') as f:
            template = f.read()
    except IOError as e:
        raise IOError(f"Error reading prompt file {prompt_file}: {e}")

    return template.format(**values) if values else template
