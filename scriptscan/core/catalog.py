from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

from .errors import CatalogError
from .matcher import CompiledPattern, compile_pattern
from .models import Category, Rule, Severity

RuleDef = Union[Rule, Mapping[str, Any]]

TEXT_FIELDS = ("title", "description", "suggestion")


def build_rule(category: str, definition: RuleDef) -> Rule:
    """Validate one rule definition and compile its pattern.

    Accepts an existing Rule (re-validated) or a mapping with the keys
    pattern, title, description, severity, suggestion and an optional flags
    string. Any problem raises CatalogError naming category and title.
    """
    if isinstance(definition, Rule):
        data: Dict[str, Any] = {
            "pattern": definition.pattern,
            "title": definition.title,
            "description": definition.description,
            "severity": definition.severity,
            "suggestion": definition.suggestion,
        }
    elif isinstance(definition, Mapping):
        data = dict(definition)
    else:
        raise CatalogError(f"rule must be a mapping, got {type(definition).__name__}", category)

    title = data.get("title")
    label = title if isinstance(title, str) and title.strip() else None

    for name in TEXT_FIELDS:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            raise CatalogError(f"missing or empty {name!r}", category, label)

    try:
        severity = Severity.parse(data.get("severity"), strict=True)
    except ValueError as exc:
        raise CatalogError(str(exc), category, label) from exc

    pattern = data.get("pattern")
    if not isinstance(pattern, CompiledPattern):
        try:
            pattern = compile_pattern(pattern, data.get("flags") or "")
        except CatalogError as exc:
            raise CatalogError(str(exc), category, label) from exc

    return Rule(
        pattern=pattern,
        title=data["title"],
        description=data["description"],
        severity=severity,
        suggestion=data["suggestion"],
    )


@dataclass(frozen=True)
class Catalog:
    """Validated, read-only set of rule categories.

    Built once per session and passed to every scan; safe to share across
    threads.
    """

    categories: Tuple[Category, ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[RuleDef]]) -> "Catalog":
        categories: List[Category] = []
        for name, defs in mapping.items():
            if not isinstance(name, str) or not name.strip():
                raise CatalogError(f"category name must be a non-empty string, got {name!r}")
            if isinstance(defs, (str, bytes, Mapping)) or not isinstance(defs, Iterable):
                raise CatalogError("rules must be a list", name)
            categories.append(Category(name=name, rules=tuple(build_rule(name, s) for s in defs)))
        return cls(categories=tuple(categories))

    def merged(self, other: "Catalog") -> "Catalog":
        """Return a catalog with ``other``'s rules appended; same-name categories are extended."""
        merged: Dict[str, Tuple[Rule, ...]] = {c.name: c.rules for c in self.categories}
        for cat in other.categories:
            merged[cat.name] = merged.get(cat.name, ()) + cat.rules
        return Catalog(categories=tuple(Category(name=n, rules=r) for n, r in merged.items()))

    def select(self, names: Iterable[str]) -> "Catalog":
        wanted = {n.strip().lower() for n in names if n.strip()}
        return Catalog(categories=tuple(c for c in self.categories if c.name.lower() in wanted))

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.categories]

    @property
    def rule_count(self) -> int:
        return sum(len(c.rules) for c in self.categories)

    def iter_rules(self) -> Iterator[Tuple[Category, Rule]]:
        for category in self.categories:
            for rule in category.rules:
                yield category, rule

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {c.name: [r.to_dict() for r in c.rules] for c in self.categories}
