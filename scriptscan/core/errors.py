from __future__ import annotations
from typing import Optional


class ScriptScanError(Exception):
    """Base class for scriptscan errors."""


class CatalogError(ScriptScanError, ValueError):
    """Raised while building a rule catalog; the whole session must stop."""

    def __init__(self, message: str, category: Optional[str] = None, title: Optional[str] = None) -> None:
        self.category = category
        self.title = title
        if category is not None:
            where = f"{category}/{title}" if title else category
            message = f"{where}: {message}"
        super().__init__(message)


class RuleExecutionWarning(ScriptScanError, RuntimeWarning):
    """A single rule failed during a scan. The rule is skipped, the scan continues."""


class RuleBudgetExceeded(RuleExecutionWarning):
    pass
