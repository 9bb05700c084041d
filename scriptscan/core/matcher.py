from __future__ import annotations
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional, Tuple

from .errors import CatalogError, RuleBudgetExceeded

if TYPE_CHECKING:  # pragma: no cover
    from .models import Rule


# Flags accepted in slash literals such as /TriggerServerEvent/gi.
# "g" is always on, "u" is the default for str patterns.
LITERAL_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
}
LITERAL_RE = re.compile(r"^/(?P<body>.*)/(?P<flags>[A-Za-z]*)$", re.DOTALL)


@dataclass(frozen=True)
class CompiledPattern:
    """A regex compiled once at catalog time.

    Case sensitivity and the other match modes travel with the pattern, so the
    engine never needs to know anything about an individual rule.
    """

    source: str
    ignore_case: bool = False
    multiline: bool = False
    dotall: bool = False
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        flags = 0
        if self.ignore_case:
            flags |= re.IGNORECASE
        if self.multiline:
            flags |= re.MULTILINE
        if self.dotall:
            flags |= re.DOTALL
        object.__setattr__(self, "regex", re.compile(self.source, flags))

    @property
    def flags(self) -> str:
        return "".join(
            ch for ch, on in (("i", self.ignore_case), ("m", self.multiline), ("s", self.dotall)) if on
        )

    def find_all(self, text: str) -> Iterator[re.Match]:
        """Yield every non-overlapping, non-empty match in ``text``.

        Each search resumes at the end of the previous match. Empty matches are
        dropped and the cursor is pushed forward by one character.
        """
        pos = 0
        end = len(text)
        search = self.regex.search
        while pos <= end:
            m = search(text, pos)
            if m is None:
                return
            if m.end() == m.start():
                pos = m.end() + 1
                continue
            yield m
            pos = m.end()

    def __str__(self) -> str:
        return f"/{self.source}/{self.flags}"


def compile_pattern(text: str, flags: str = "") -> CompiledPattern:
    """Compile a plain regex or a ``/body/flags`` literal.

    Raises CatalogError for unknown flags and for regexes ``re`` rejects.
    """
    if not isinstance(text, str) or not text:
        raise CatalogError("pattern must be a non-empty string")
    body = text
    flags = flags or ""
    m = LITERAL_RE.match(text)
    if m and m.group("body"):
        body = m.group("body")
        flags += m.group("flags")
    unknown = sorted(set(flags) - set(LITERAL_FLAGS))
    if unknown:
        raise CatalogError(f"unsupported pattern flag(s): {''.join(unknown)}")
    try:
        return CompiledPattern(
            source=body,
            ignore_case="i" in flags,
            multiline="m" in flags,
            dotall="s" in flags,
        )
    except re.error as exc:
        raise CatalogError(f"invalid pattern {text!r}: {exc}") from exc


@dataclass(frozen=True)
class MatchBudget:
    """Per-rule execution limits. ``None`` disables a limit."""

    max_seconds: Optional[float] = None
    max_matches: Optional[int] = None

    def check(self, rule: "Rule", matches: int, started: float) -> None:
        if self.max_matches is not None and matches > self.max_matches:
            raise RuleBudgetExceeded(
                f"rule {rule.title!r} produced more than {self.max_matches} matches"
            )
        if self.max_seconds is not None:
            elapsed = time.perf_counter() - started
            if elapsed > self.max_seconds:
                raise RuleBudgetExceeded(
                    f"rule {rule.title!r} ran for {elapsed:.2f}s (limit {self.max_seconds:.2f}s)"
                )


@dataclass(frozen=True)
class RawMatch:
    rule: "Rule"
    start: int
    end: int
    text: str

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end


def match(rule: "Rule", text: str, budget: Optional[MatchBudget] = None) -> Iterator[RawMatch]:
    """Lazily enumerate ``rule``'s matches in ``text``.

    The budget is checked after every match and once more when the search
    is exhausted, so a slow rule that finds nothing is still caught. The wall
    clock cannot interrupt a single regex search in progress.
    """
    started = time.perf_counter()
    count = 0
    for m in rule.pattern.find_all(text):
        count += 1
        if budget is not None:
            budget.check(rule, count, started)
        yield RawMatch(rule=rule, start=m.start(), end=m.end(), text=m.group(0))
    if budget is not None:
        budget.check(rule, count, started)
