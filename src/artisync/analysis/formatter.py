"""Impact report rendering.

Renders ImpactReports for the `analyze` command:
- text: human-readable listing rendered from a Jinja2 template
- json: ImpactReport.to_dict() serialized with sorted keys

Output is deterministic: the same report always renders to the same text.
"""

import json

from jinja2 import Environment, PackageLoader, select_autoescape

from artisync.models.impact import ImpactReport


def short_sha(sha: str | None, length: int = 7) -> str:
    """Abbreviate a commit SHA for display."""
    if not sha:
        return "-------"
    return sha[:length]


class ReportFormatter:
    """Renders impact reports as text or JSON.

    Usage:
        formatter = ReportFormatter()
        print(formatter.render_text(report))
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("artisync", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["short_sha"] = short_sha

    def render_text(self, report: ImpactReport) -> str:
        """Render a human-readable report."""
        template = self._env.get_template("impact_report.txt.j2")
        return template.render(report=report, counts=report.count_by_type())

    def render_json(self, report: ImpactReport) -> str:
        """Render the report as indented JSON."""
        return json.dumps(report.to_dict(), indent=2, sort_keys=True)

    def render(self, report: ImpactReport, output_format: str = "text") -> str:
        """Render in the given format ("text" or "json").

        Raises:
            ValueError: If the format is unknown
        """
        if output_format == "json":
            return self.render_json(report)
        if output_format == "text":
            return self.render_text(report)
        raise ValueError(f"Unknown report format: {output_format}. Valid: text, json")
