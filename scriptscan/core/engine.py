from __future__ import annotations
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from .catalog import Catalog
from .locations import LocationResolver
from .matcher import MatchBudget, RawMatch, match
from .models import Finding, Location, Report, Rule, SkippedRule, empty_summary

ENGINE_LOGGER_NAME = "scriptscan.engine"


def build_finding(
    category: str,
    rule: Rule,
    raw: RawMatch,
    location: Location,
    file_path: Optional[str] = None,
) -> Finding:
    return Finding(
        category=category,
        rule=rule,
        location=location,
        matched_text=raw.text,
        file_path=file_path,
    )


def sort_key(finding: Finding) -> Tuple[int, int, str, int]:
    # severity desc, line asc, category asc; column only breaks remaining ties
    return (-finding.severity.rank, finding.location.line, finding.category, finding.location.column)


def order_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Sort findings for output. The sort is stable, so equal keys keep catalog order."""
    return sorted(findings, key=sort_key)


def dedupe(findings: Iterable[Finding]) -> List[Finding]:
    seen = set()
    out: List[Finding] = []
    for f in findings:
        key = f.identity
        if key in seen:
            continue
        seen.add(key)
        out.append(f)
    return out


def summarize(findings: Iterable[Finding]) -> Tuple[Dict[str, int], Dict[str, int]]:
    summary = empty_summary()
    by_category: Counter = Counter()
    for f in findings:
        summary[f.severity.value] += 1
        by_category[f.category] += 1
    return summary, dict(sorted(by_category.items()))


def scan(
    catalog: Catalog,
    text: str,
    *,
    file_path: Optional[str] = None,
    budget: Optional[MatchBudget] = None,
    logger: Optional[logging.Logger] = None,
) -> Report:
    """Evaluate every rule of ``catalog`` against ``text`` and build a Report.

    Rules run in catalog order. A rule that raises, or exhausts ``budget``,
    contributes nothing: its partial matches are dropped, the failure is
    logged and counted in ``rules_skipped``. Empty text yields an empty
    Report.
    """
    log = logger or logging.getLogger(ENGINE_LOGGER_NAME)
    collected: List[Finding] = []
    skipped: List[SkippedRule] = []

    if text:
        resolver = LocationResolver(text)
        for category, rule in catalog.iter_rules():
            try:
                rule_findings = [
                    build_finding(category.name, rule, raw, resolver.resolve(raw.start), file_path)
                    for raw in match(rule, text, budget)
                ]
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
                log.warning(
                    "Skipping rule %s/%s%s: %s",
                    category.name,
                    rule.title,
                    f" on {file_path}" if file_path else "",
                    reason,
                )
                skipped.append(SkippedRule(category.name, rule.title, reason, file_path))
                continue
            collected.extend(rule_findings)

    findings = order_findings(dedupe(collected))
    summary, by_category = summarize(findings)
    return Report(
        findings=tuple(findings),
        summary=summary,
        by_category=by_category,
        rules_skipped=len(skipped),
        skipped=tuple(skipped),
        file_path=file_path,
    )


def merge_reports(reports: Iterable[Report]) -> Report:
    """Combine per-file reports into one.

    Reports are concatenated in the order given and re-ranked with the same
    ordering as a single scan. Findings from different files are never
    deduplicated against each other.
    """
    reports = list(reports)
    findings: List[Finding] = []
    skipped: List[SkippedRule] = []
    for r in reports:
        findings.extend(r.findings)
        skipped.extend(r.skipped)
    findings = order_findings(findings)
    summary, by_category = summarize(findings)
    return Report(
        findings=tuple(findings),
        summary=summary,
        by_category=by_category,
        rules_skipped=sum(r.rules_skipped for r in reports),
        skipped=tuple(skipped),
        file_path=None,
        files_scanned=sum(r.files_scanned for r in reports),
    )
