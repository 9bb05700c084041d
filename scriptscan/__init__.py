from __future__ import annotations

from .core.catalog import Catalog
from .core.engine import merge_reports, scan
from .core.errors import CatalogError, RuleBudgetExceeded, RuleExecutionWarning
from .core.loader import build_default_catalog, load_catalog
from .core.matcher import MatchBudget, compile_pattern
from .core.models import Finding, Location, Report, Rule, Severity

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CatalogError",
    "Finding",
    "Location",
    "MatchBudget",
    "Report",
    "Rule",
    "RuleBudgetExceeded",
    "RuleExecutionWarning",
    "Severity",
    "build_default_catalog",
    "compile_pattern",
    "load_catalog",
    "merge_reports",
    "scan",
]
