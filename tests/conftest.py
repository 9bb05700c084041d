from __future__ import annotations

import pytest

from scriptscan.core.catalog import Catalog


def rule(pattern, title="Rule", severity="high", description="desc", suggestion="fix it"):
    return {
        "pattern": pattern,
        "title": title,
        "description": description,
        "severity": severity,
        "suggestion": suggestion,
    }


@pytest.fixture()
def trigger_catalog() -> Catalog:
    return Catalog.from_mapping(
        {"eventSystem": [rule("/TriggerServerEvent/", title="Unprotected event trigger", severity="critical")]}
    )
