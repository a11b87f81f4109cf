"""
Markdown reports for position suite runs.

The report is meant for CI job summaries and pull request comments: a global
summary, then one section per suite with its failures folded into a
<details> block.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from chess_devtools.suites.positions import Suite
from chess_devtools.suites.runner import PositionResult


@dataclass
class SuiteSummary:
    """Pass/fail counts for one suite (or for a whole run)."""

    passed: int
    total: int

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def percentage(self) -> float:
        return self.passed * 100 / self.total if self.total else 0.0

    @classmethod
    def of(cls, results: Sequence[PositionResult]) -> "SuiteSummary":
        return cls(passed=sum(1 for r in results if r.correct), total=len(results))

    def to_markdown(self) -> List[str]:
        return [
            f"* ✅ {self.passed} passed",
            f"* ❌ {self.failed} failed",
            f"* 💡 {self.total} total",
            f"* 🧮 {self.percentage:.2f}% success",
        ]


def _suite_section(suite: Suite, results: Sequence[PositionResult]) -> List[str]:
    summary = SuiteSummary.of(results)
    lines = [f"## {suite.name}", "", suite.comment, ""]
    lines += summary.to_markdown()

    failures = sorted((r for r in results if not r.correct), key=lambda r: r.position.id)
    if failures:
        lines += [
            "",
            "<details>",
            "<summary>",
            "  <h3>🔎 Failure details</h3>",
            "</summary>",
            "",
            "| id | input | expected | got |",
            "| -- |  --   |    --    | --  |",
        ]
        lines += [
            f"| {r.position.id} | {r.position.fen} | {r.expected} | {r.found_move} |"
            for r in failures
        ]
        lines += ["", "</details>"]
    return lines


def generate_report(suites: Sequence[Suite], results: Sequence[PositionResult]) -> str:
    """
    Build the markdown report for a run.

    Suites with no results in this run (e.g. filtered out by --match) are
    left out. Suite sections are ordered by suite name.

    Args:
        suites: Suites the positions were drawn from
        results: Results of the run

    Returns:
        Markdown-formatted report string
    """
    suite_by_id: Dict[str, Suite] = {
        position.id: suite for suite in suites for position in suite.positions
    }
    grouped: Dict[str, List[PositionResult]] = defaultdict(list)
    suites_by_key = {suite.key: suite for suite in suites}
    for result in results:
        grouped[suite_by_id[result.position.id].key].append(result)

    lines = ["# 🧪 Position Test Results", ""]
    lines += SuiteSummary.of(results).to_markdown()

    for suite in sorted((suites_by_key[k] for k in grouped), key=lambda s: s.name):
        lines += ["", ""]
        lines += _suite_section(suite, grouped[suite.key])

    return "\n".join(lines) + "\n"
