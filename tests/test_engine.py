from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

from scriptscan.core.catalog import Catalog
from scriptscan.core.engine import build_finding, merge_reports, scan
from scriptscan.core.matcher import CompiledPattern, MatchBudget, RawMatch
from scriptscan.core.models import Location, Rule, Severity

from .conftest import rule


class ExplodingPattern(CompiledPattern):
    def find_all(self, text):
        raise RuntimeError("catastrophic backtracking")


def exploding_rule(title="Exploding") -> Rule:
    return Rule(
        pattern=ExplodingPattern("x"),
        title=title,
        description="always fails",
        severity=Severity.HIGH,
        suggestion="none",
    )


def test_trigger_server_event_scenario(trigger_catalog):
    report = scan(trigger_catalog, "a\nTriggerServerEvent('x')\nTriggerServerEvent('y')")
    assert [f.location.line for f in report.findings] == [2, 3]
    assert all(f.location.column == 1 for f in report.findings)
    assert report.summary == {"critical": 2, "high": 0, "medium": 0, "low": 0}
    assert report.total_count == 2
    assert report.rules_skipped == 0
    assert report.by_category == {"eventSystem": 2}


def test_empty_input_gives_empty_report(trigger_catalog):
    report = scan(trigger_catalog, "")
    assert report.findings == ()
    assert report.total_count == 0
    assert set(report.summary.values()) == {0}
    assert list(report.summary) == ["critical", "high", "medium", "low"]


def test_scan_is_deterministic():
    catalog = Catalog.from_mapping(
        {
            "b": [rule("foo", title="Foo", severity="low"), rule("bar", title="Bar", severity="critical")],
            "a": [rule("o+", title="Os", severity="low")],
        }
    )
    text = "foo bar\nbar foo\n" * 20
    first = scan(catalog, text)
    second = scan(catalog, text)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_completeness_and_locations():
    catalog = Catalog.from_mapping({"c": [rule("Wait", title="wait")]})
    text = "Wait(0)\n  x = 1 Wait(1)\n\tWait(2)"
    report = scan(catalog, text)
    assert [f.location for f in report.findings] == [Location(1, 1), Location(2, 9), Location(3, 2)]
    assert all(f.matched_text == "Wait" for f in report.findings)


def test_ordering_severity_then_line_then_category():
    catalog = Catalog.from_mapping(
        {
            "zeta": [rule("low", title="L", severity="low"), rule("crit", title="C", severity="critical")],
            "beta": [rule("high", title="H", severity="high")],
            "alpha": [rule("high", title="H2", severity="high")],
        }
    )
    text = "low crit\nhigh\ncrit\nlow"
    report = scan(catalog, text)
    keys = [(f.severity.value, f.location.line, f.category) for f in report.findings]
    assert keys == [
        ("critical", 1, "zeta"),
        ("critical", 3, "zeta"),
        ("high", 2, "alpha"),
        ("high", 2, "beta"),
        ("low", 1, "zeta"),
        ("low", 4, "zeta"),
    ]
    ranks = [f.severity.rank for f in report.findings]
    assert ranks == sorted(ranks, reverse=True)


def test_duplicate_identity_keeps_first_in_catalog_order():
    catalog = Catalog.from_mapping(
        {"c": [rule("foo", title="Same", severity="low"), rule("fo+", title="Same", severity="high")]}
    )
    report = scan(catalog, "foo")
    assert report.total_count == 1
    assert report.findings[0].severity is Severity.LOW
    identities = [f.identity for f in scan(catalog, "foo\nfoo foo").findings]
    assert len(identities) == len(set(identities))


def test_different_rules_on_same_line_are_distinct():
    catalog = Catalog.from_mapping(
        {"events": [rule("TriggerServerEvent", title="A"), rule("Trigger\\w+", title="B")]}
    )
    report = scan(catalog, "TriggerServerEvent('x')")
    assert sorted(f.rule.title for f in report.findings) == ["A", "B"]


def test_failing_rule_is_isolated():
    catalog = Catalog.from_mapping(
        {
            "broken": [exploding_rule("First"), exploding_rule("Second")],
            "events": [rule("TriggerEvent", title="Trigger", severity="high")],
        }
    )
    report = scan(catalog, "TriggerEvent('a')\nTriggerEvent('b')", file_path="client.lua")
    assert report.total_count == 2
    assert report.rules_skipped == 2
    assert [s.title for s in report.skipped] == ["First", "Second"]
    assert "catastrophic backtracking" in report.skipped[0].reason
    assert report.skipped[0].file_path == "client.lua"


def test_budget_exhaustion_drops_partial_matches():
    catalog = Catalog.from_mapping(
        {
            "noisy": [rule("a", title="Noisy", severity="low")],
            "quiet": [rule("quiet", title="Quiet", severity="medium")],
        }
    )
    report = scan(catalog, "a a a a\nquiet", budget=MatchBudget(max_matches=3))
    assert [f.rule.title for f in report.findings] == ["Quiet"]
    assert report.rules_skipped == 1
    assert "RuleBudgetExceeded" in report.skipped[0].reason


def test_file_path_is_attached(trigger_catalog):
    report = scan(trigger_catalog, "TriggerServerEvent()", file_path="server/main.lua")
    assert report.file_path == "server/main.lua"
    assert report.findings[0].file_path == "server/main.lua"
    assert report.to_dict()["findings"][0]["file_location"] == "server/main.lua"


def test_build_finding():
    r = Rule(
        pattern=CompiledPattern("x"),
        title="t",
        description="d",
        severity=Severity.MEDIUM,
        suggestion="s",
    )
    f = build_finding("cat", r, RawMatch(r, 4, 5, "x"), Location(2, 1), "f.lua")
    assert (f.category, f.rule, f.location, f.matched_text, f.file_path) == ("cat", r, Location(2, 1), "x", "f.lua")
    assert f.severity is Severity.MEDIUM


def test_merge_reports_reranks_across_files():
    catalog = Catalog.from_mapping(
        {"c": [rule("hi", title="H", severity="high"), rule("lo", title="L", severity="low")]}
    )
    a = scan(catalog, "lo\nhi\nhi", file_path="a.lua")
    b = scan(catalog, "hi\nlo", file_path="b.lua")
    merged = merge_reports([a, b])
    assert merged.files_scanned == 2
    assert merged.total_count == 5
    assert merged.summary["high"] == 3
    order = [(f.file_path, f.location.line, f.severity.value) for f in merged.findings]
    assert order == [
        ("b.lua", 1, "high"),
        ("a.lua", 2, "high"),
        ("a.lua", 3, "high"),
        ("a.lua", 1, "low"),
        ("b.lua", 2, "low"),
    ]
    assert merge_reports([]).total_count == 0


def test_concurrent_scans_share_one_catalog(trigger_catalog):
    texts = ["TriggerServerEvent()\n" * n for n in range(1, 30)]
    with ThreadPoolExecutor(max_workers=8) as ex:
        reports = list(ex.map(lambda t: scan(trigger_catalog, t), texts))
    assert [r.total_count for r in reports] == list(range(1, 30))


class SlowEmptyPattern(CompiledPattern):
    def find_all(self, text):
        time.sleep(0.05)
        return iter(())


def test_time_budget_skips_slow_rule_that_finds_nothing():
    slow = Rule(pattern=SlowEmptyPattern("x"), title="Slow", description="d", severity=Severity.LOW, suggestion="s")
    catalog = Catalog.from_mapping(
        {"slow": [slow], "events": [rule("TriggerEvent", title="Trigger")]}
    )
    report = scan(catalog, "TriggerEvent()", budget=MatchBudget(max_seconds=0.01))
    assert report.rules_skipped == 1
    assert report.skipped[0].title == "Slow"
    assert [f.rule.title for f in report.findings] == ["Trigger"]


def test_time_budget_with_backtracking_pattern():
    catalog = Catalog.from_mapping({"slow": [rule("(x+x+)+y", title="Backtracking")]})
    report = scan(catalog, "x" * 22, budget=MatchBudget(max_seconds=0.01))
    assert report.rules_skipped == 1
    assert report.total_count == 0
