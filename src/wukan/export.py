"""Markdown export of finished answers and transcripts."""

from pathlib import Path

from .conversation.models import Conversation
from .llm.models import ChatMessage
from .prompts.form import FormData

DEFAULT_REPORT_STEM = "Strategy_Analysis"

_ROLE_HEADINGS = {
    "user": "用户",
    "assistant": "AI 分析师",
    "system": "系统",
}


def report_filename(form: FormData | None = None) -> str:
    """File name for a downloaded report, e.g. ``Model_Y_Report.md``."""
    stem = (form.product_name if form else "") or DEFAULT_REPORT_STEM
    # Keep the name usable on every filesystem
    for char in '/\\:*?"<>|':
        stem = stem.replace(char, "_")
    return f"{stem}_Report.md"


def export_markdown(message: ChatMessage, path: Path) -> Path:
    """Write a finished message's content as a Markdown file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(message.content, encoding="utf-8")
    return path


def render_transcript(conversation: Conversation) -> str:
    """Render the whole conversation as Markdown, reasoning omitted."""
    sections = []
    for message in conversation.messages:
        heading = _ROLE_HEADINGS.get(message.role, message.role)
        sections.append(f"## {heading}\n\n{message.content.strip()}\n")
    return "\n".join(sections)


def export_transcript(conversation: Conversation, path: Path) -> Path:
    """Write the whole conversation as a Markdown file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_transcript(conversation), encoding="utf-8")
    return path
