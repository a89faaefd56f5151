"""Report Module - Renders classified references for the originating document."""

from typing import List

from .classifier import ClassificationGroups

HEADING_MARKS = {
    'org': '*',
    'markdown': '#',
}


class ReportRenderer:
    """Renders a References section with one sub-heading per non-empty group."""

    def __init__(self, markup: str = "org"):
        if markup not in HEADING_MARKS:
            raise ValueError(f"Unsupported report markup: {markup}")
        self.markup = markup
        self.mark = HEADING_MARKS[markup]

    def heading(self, title: str, level: int) -> str:
        return f"{self.mark * level} {title}"

    def render(self, groups: ClassificationGroups) -> str:
        lines: List[str] = [self.heading("References", 1)]
        for group in groups.non_empty():
            lines.append(self.heading(group.heading, 2))
            lines.extend(f"- {line}" for line in groups.lines(group))
        return "\n".join(lines) + "\n"
