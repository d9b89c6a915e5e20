"""Rich renderables for streamed answers."""

from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from ..llm.models import ChatMessage
from ..research_log import StepKind, parse_research_log

STEP_STYLES = {
    StepKind.SEARCH: ("🔍", "blue"),
    StepKind.ANALYSIS: ("🧠", "magenta"),
    StepKind.CHECK: ("✔", "green"),
    StepKind.STEP: ("•", "dim"),
}


def render_research_log(reasoning: str | None, active: bool) -> RenderableType | None:
    """Render reasoning as a research log panel; None when there is nothing to show."""
    steps = parse_research_log(reasoning)
    if not steps and not active:
        return None

    body = Text()
    if not steps:
        body.append("Initializing thought process...", style="dim italic")
    for i, step in enumerate(steps):
        icon, style = STEP_STYLES[step.kind]
        if i:
            body.append("\n")
        body.append(f"{icon} ", style=style)
        body.append(step.text, style="dim")

    title = "Thinking..." if active else "Thinking"
    return Panel(body, title=title, title_align="left", border_style="dim")


def render_message(message: ChatMessage, active: bool = False) -> RenderableType:
    """Render an assistant message: research log first, then the answer."""
    parts: list[RenderableType] = []
    log = render_research_log(message.reasoning, active)
    if log is not None:
        parts.append(log)
    if message.content:
        parts.append(Markdown(message.content))
    elif active and log is None:
        parts.append(Text("正在分析...", style="dim"))
    return Group(*parts)
