"""Turn streamed reasoning text into a readable research log.

The analysis prompt asks the model to narrate its reasoning one step per
line, prefixed with a tag such as ``> [Search]``. Each non-empty line becomes
a ``ResearchStep`` with its bullet and tag stripped and a coarse kind used
for display.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

_BULLET_RE = re.compile(r"^[>*\- ]+")
_TAG_RE = re.compile(
    r"^\[(Search|Analysis|Gap Analysis|Data Check|Gap|Competitor|Market|Tech|"
    r"Data Synthesis|User Insight|Self Diagnosis|Strategic Positioning|"
    r"Value Bottom Line|Roadmap Logic|Tech Trend Mapping|Competitor Deep Dive)\]:?"
)


class StepKind(str, Enum):
    SEARCH = "search"
    ANALYSIS = "analysis"
    CHECK = "check"
    STEP = "step"


class ResearchStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: StepKind
    text: str


def classify_line(line: str) -> StepKind:
    """Classify a reasoning line by keyword, first match wins."""
    lower = line.lower()
    if "search" in lower or "搜索" in lower:
        return StepKind.SEARCH
    if "analysis" in lower or "分析" in lower or "thinking" in lower:
        return StepKind.ANALYSIS
    if "check" in lower or "检查" in lower:
        return StepKind.CHECK
    return StepKind.STEP


def clean_line(line: str) -> str:
    """Strip leading bullets and a known step tag."""
    return _TAG_RE.sub("", _BULLET_RE.sub("", line)).strip()


def parse_research_log(reasoning: str | None) -> list[ResearchStep]:
    """Split reasoning text into classified steps, skipping blank lines."""
    if not reasoning:
        return []
    return [
        ResearchStep(kind=classify_line(line), text=clean_line(line))
        for line in reasoning.split("\n")
        if line.strip()
    ]
