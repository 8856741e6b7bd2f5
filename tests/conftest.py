"""Pytest fixtures for Automaker tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="automaker-tests-"))
os.environ["AUTOMAKER_DATA_DIR"] = str(_TEST_BASE_DIR / "data")
os.environ["AUTOMAKER_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")

if TYPE_CHECKING:
    from automaker.core.events import InMemoryEventBus
    from tests.helpers.fakes import InMemoryFeatureStore


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Apply markers from the test's location (tests/core/unit -> core + unit)."""
    del config
    for item in items:
        parts = Path(str(item.fspath)).parts
        if "core" in parts:
            item.add_marker(pytest.mark.core)
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    """Create an in-memory event bus for service tests."""
    from automaker.core.events import InMemoryEventBus

    return InMemoryEventBus()


@pytest.fixture
def feature_store() -> InMemoryFeatureStore:
    from tests.helpers.fakes import InMemoryFeatureStore

    return InMemoryFeatureStore()
