from __future__ import annotations
import importlib
import json
import pkgutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from ..patterns.base import RulePack
from .catalog import Catalog
from .errors import CatalogError


def _discover_package_classes(pkg, base_cls) -> Dict[str, Type]:
    discovered: Dict[str, Type] = {}
    for m in pkgutil.iter_modules(pkg.__path__, pkg.__name__ + "."):
        module = importlib.import_module(m.name)
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if isinstance(obj, type) and issubclass(obj, base_cls) and obj is not base_cls:
                discovered[getattr(obj, "NAME", obj.__name__)] = obj
    return discovered


def discover_rule_packs() -> List[Type[RulePack]]:
    from .. import patterns as patterns_pkg  # lazy import
    classes = _discover_package_classes(patterns_pkg, RulePack)
    return sorted(classes.values(), key=lambda cls: (cls.ORDER, cls.NAME))


def select_rule_packs(packs: List[Type[RulePack]], selector: Optional[str]) -> List[Type[RulePack]]:
    selector = (selector or "all").strip().lower()
    if selector == "all" or selector == "*":
        return list(packs)
    wanted = {t.strip() for t in selector.split(",") if t.strip()}
    return [p for p in packs if p.NAME.lower() in wanted]


def build_default_catalog(selector: Optional[str] = None) -> Catalog:
    """Compile the built-in rule packs into a Catalog, optionally filtered by category name."""
    packs = select_rule_packs(discover_rule_packs(), selector)
    return Catalog.from_mapping({p.NAME: p.definitions() for p in packs})


def load_rules_file(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogError(f"cannot read rules file {path}: {exc}") from exc
    except ValueError as exc:
        raise CatalogError(f"rules file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogError(f"rules file {path} must contain an object of category -> rule list")
    return data


def load_catalog(
    selector: Optional[str] = None,
    rules_file: Optional[Path] = None,
    include_builtin: bool = True,
) -> Catalog:
    """Build the session catalog: built-in packs, then any custom rules file.

    The category selector applies to custom categories as well.
    """
    catalog = build_default_catalog(selector) if include_builtin else Catalog()
    if rules_file is not None:
        custom = Catalog.from_mapping(load_rules_file(rules_file))
        selector = (selector or "all").strip().lower()
        if selector not in ("all", "*"):
            custom = custom.select(selector.split(","))
        catalog = catalog.merged(custom)
    return catalog
