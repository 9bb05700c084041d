from __future__ import annotations
from typing import Any, Dict, List


class RulePack:
    """
    Base class for built-in rule packs. Subclasses set NAME (the category
    name used in reports), ORDER (position in the default catalog) and RULES,
    a list of rule definitions with pattern, title, description, severity,
    suggestion and optional flags. Packs are plain data; the catalog compiles
    and validates them.
    """
    NAME: str = "base"
    ORDER: int = 1000
    RULES: List[Dict[str, Any]] = []

    @classmethod
    def definitions(cls) -> List[Dict[str, Any]]:
        return [dict(r) for r in cls.RULES]
