"""Prompt management module.

Externalizes prompts to text files for easy customization.
Prompts can be overridden by placing files in the working directory.
"""

from functools import lru_cache
from pathlib import Path

from .form import FormData

# Default prompts directory (package location)
_PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt template from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: wukan/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8")

    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def render_strategy_prompt(form: FormData) -> str:
    """Fill the strategy analysis template with the form fields.

    Empty fields render as empty strings; the template is sent as-is
    otherwise. Literal braces in a custom template must be doubled.

    Raises:
        ValueError: If the template names an unknown field or has an
            unbalanced brace
    """
    try:
        return load_prompt("strategy").format(**form.model_dump())
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(
            f"Invalid placeholder in prompt template 'strategy' ({e!r}); "
            "write literal braces as {{ and }}"
        ) from e


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "FormData",
    "load_prompt",
    "render_strategy_prompt",
    "clear_cache",
]
