from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from .models import Finding, Report, Severity


def exit_code(report: Report, fail_on: Union[Severity, str, None] = Severity.CRITICAL) -> int:
    """1 when any finding is at or above ``fail_on``; ``None`` never fails."""
    if fail_on is None:
        return 0
    threshold = Severity.parse(fail_on).rank
    if any(f.severity.rank >= threshold for f in report.findings):
        return 1
    return 0


def _where(f: Finding) -> str:
    loc = f"{f.location.line}:{f.location.column}"
    return f"{f.file_path}:{loc}" if f.file_path else loc


def format_console(report: Report, max_findings: Optional[int] = 20) -> str:
    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in report.summary.items():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    lines.append(f"Files     : {report.files_scanned}")
    lines.append(f"Findings  : {report.total_count}")
    if report.rules_skipped:
        lines.append(f"Skipped   : {report.rules_skipped} rule evaluation(s)")

    shown = report.findings if max_findings is None else report.findings[:max_findings]
    if shown:
        lines.append("")
        for f in shown:
            lines.append(f"[{f.severity.value.upper()}] {_where(f)} {f.rule.title} ({f.category})")
            lines.append(f"  {f.rule.description}: `{f.matched_text.strip()}`")
        hidden = report.total_count - len(shown)
        if hidden > 0:
            lines.append(f"... {hidden} more finding(s), see report.md")
    return "\n".join(lines)


class Reporter:
    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir

    def write_all(self, report: Report) -> Dict[str, int]:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        (self.out_dir / "report.json").write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        (self.out_dir / "report.md").write_text(self._findings_markdown(report), encoding="utf-8")
        (self.out_dir / "summary.md").write_text(self._summary_markdown(report), encoding="utf-8")
        return {"findings": report.total_count, "artifacts": 3}

    def _findings_markdown(self, report: Report) -> str:
        lines = ["# Findings", ""]
        for f in report.findings:
            lines.append(f"- **severity**: {f.severity.value}  ")
            if f.file_path:
                lines.append(f"  **file**: {f.file_path}  ")
            lines.append(f"  **line**: {f.location.line}  ")
            lines.append(f"  **column**: {f.location.column}  ")
            lines.append(f"  **category**: {f.category}  ")
            lines.append(f"  **title**: {f.rule.title}  ")
            lines.append(f"  **description**: {f.rule.description}  ")
            lines.append(f"  **match**: `{f.matched_text.strip()}`  ")
            lines.append(f"  **suggestion**: {f.rule.suggestion}  ")
            lines.append("")
        if report.skipped:
            lines.append("## Skipped rules")
            lines.append("")
            for s in report.skipped:
                where = f" ({s.file_path})" if s.file_path else ""
                lines.append(f"- {s.category}/{s.title}{where}: {s.reason}")
            lines.append("")
        return "\n".join(lines)

    def _summary_markdown(self, report: Report) -> str:
        lines = ["# Scan Summary", ""]
        lines.append(f"- files scanned: {report.files_scanned}")
        lines.append(f"- findings: {report.total_count}")
        lines.append(f"- rules skipped: {report.rules_skipped}")
        lines.append("")
        lines.append("## By severity")
        for severity, count in report.summary.items():
            lines.append(f"- {severity}: {count}")
        lines.append("")
        lines.append("## By category")
        for category, count in report.by_category.items():
            lines.append(f"- {category}: {count}")
        lines.append("")
        return "\n".join(lines)
