"""
In-memory registry of dam operating parameters.

The registry file is a JSON object keyed by dam identifier (for example
``"tehri_dam"``). Lookups match a free-text name by containment, so
"Tehri Dam, Uttarakhand" resolves to ``tehri_dam``. The first matching key in
file order wins; overlapping keys are not disambiguated.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class DamConfig(BaseModel):
    """Operating thresholds for a single dam."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Registry key, e.g. 'tehri_dam'.")
    capacity_m: float = Field(
        ..., description="Full reservoir level in metres above sea level."
    )
    warn_fraction: float = Field(
        0.9, gt=0, le=1, description="Fraction of capacity that triggers a warning."
    )
    rate_threshold_m_per_day: float = Field(
        1.0, gt=0, description="Daily rise considered dangerous."
    )
    emergency_margin_m: float = Field(
        0.0, ge=0, description="Height above capacity before emergency release."
    )


def normalize_name(value: str) -> str:
    return value.replace("_", " ").lower().strip()


def find_dam(registry: Mapping[str, DamConfig], name: str) -> Optional[DamConfig]:
    """Return the first config whose normalized key occurs inside ``name``."""
    haystack = name.lower()
    for key, config in registry.items():
        if normalize_name(key) in haystack:
            return config
    return None


class DamRegistry:
    """Ordered, read-only mapping of dam identifiers to configuration."""

    def __init__(self, dams: Mapping[str, DamConfig]) -> None:
        self._dams: Dict[str, DamConfig] = dict(dams)

    @classmethod
    def from_file(cls, path: str | Path) -> "DamRegistry":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        registry = cls.from_mapping(raw)
        logger.info("Loaded %d dams from %s", len(registry), path)
        return registry

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Mapping[str, float]]) -> "DamRegistry":
        dams = {
            key: DamConfig(id=key, **{k: v for k, v in values.items() if k != "id"})
            for key, values in raw.items()
        }
        return cls(dams)

    def find(self, name: str) -> Optional[DamConfig]:
        return find_dam(self._dams, name)

    def all(self) -> List[DamConfig]:
        return list(self._dams.values())

    def __len__(self) -> int:
        return len(self._dams)

    def __iter__(self) -> Iterator[str]:
        return iter(self._dams)


__all__ = ["DamConfig", "DamRegistry", "find_dam", "normalize_name"]
