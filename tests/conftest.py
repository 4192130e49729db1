"""Pytest configuration shared across the suite."""

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from damwatch.services.dam_registry import DamRegistry


@pytest.fixture
def anyio_backend() -> str:
    """Run AnyIO-marked tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def registry() -> DamRegistry:
    """Single-dam registry matching analyses for "Tehri Dam"."""
    return DamRegistry.from_mapping({"tehri_dam": {"capacity_m": 830.0}})
