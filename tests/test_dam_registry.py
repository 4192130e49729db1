try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import pytest
from pydantic import ValidationError

from damwatch.core.config import DEFAULT_REGISTRY_PATH
from damwatch.services.dam_registry import DamConfig, DamRegistry, find_dam


def test_find_matches_key_inside_free_text() -> None:
    registry = DamRegistry.from_mapping({"tehri_dam": {"capacity_m": 830.0}})

    config = registry.find("Tehri Dam, India")

    assert config is not None
    assert config.id == "tehri_dam"
    assert config.capacity_m == 830.0
    assert config.warn_fraction == 0.9


def test_find_returns_none_without_match() -> None:
    registry = DamRegistry.from_mapping({"tehri_dam": {"capacity_m": 830.0}})

    assert registry.find("Hoover Dam") is None
    assert registry.find("") is None


def test_first_key_in_order_wins() -> None:
    registry = {
        "sagar": DamConfig(id="sagar", capacity_m=1.0),
        "nagarjuna_sagar": DamConfig(id="nagarjuna_sagar", capacity_m=2.0),
    }

    assert find_dam(registry, "Nagarjuna Sagar").id == "sagar"


def test_from_file_preserves_order(tmp_path) -> None:
    path = tmp_path / "dams.json"
    path.write_text(
        json.dumps(
            {
                "koyna_dam": {"capacity_m": 660.0, "rate_threshold_m_per_day": 0.8},
                "idukki": {"capacity_m": 732.0},
            }
        ),
        encoding="utf-8",
    )

    registry = DamRegistry.from_file(path)

    assert list(registry) == ["koyna_dam", "idukki"]
    assert len(registry) == 2
    assert registry.find("Koyna Dam").rate_threshold_m_per_day == 0.8


def test_invalid_thresholds_are_rejected() -> None:
    with pytest.raises(ValidationError):
        DamRegistry.from_mapping({"bad": {"capacity_m": 10.0, "warn_fraction": 1.5}})


def test_packaged_registry_loads() -> None:
    registry = DamRegistry.from_file(DEFAULT_REGISTRY_PATH)

    assert len(registry) >= 1
    assert registry.find("Tehri Dam") is not None
