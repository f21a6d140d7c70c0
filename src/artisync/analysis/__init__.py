"""Impact analysis: which artifacts does a git change touch?

- rules: glob-based classification of paths into artifacts
- impact_analyzer: ImpactAnalyzer, commit range -> ImpactReport
- formatter: text/JSON rendering of impact reports
"""

from artisync.analysis.formatter import ReportFormatter
from artisync.analysis.impact_analyzer import ImpactAnalyzer
from artisync.analysis.rules import ArtifactRule, Classification, RuleSet, render_template

__all__ = [
    "ArtifactRule",
    "Classification",
    "ImpactAnalyzer",
    "ReportFormatter",
    "RuleSet",
    "render_template",
]
