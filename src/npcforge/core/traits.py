"""
Personality trait vector for NPC agents.

Four continuous scalars, each bounded to [-1, 1]:

    aggressiveness       passive (-1)   ... aggressive (1)
    confidence           shy (-1)       ... confident (1)
    emotional_stability  volatile (-1)  ... calm (1)
    extraversion         introvert (-1) ... extravert (1)

The field order is fixed and drives the first four observation slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np


TRAIT_NAMES: tuple[str, ...] = (
    "aggressiveness",
    "confidence",
    "emotional_stability",
    "extraversion",
)

TRAIT_COUNT = len(TRAIT_NAMES)
TRAIT_MIN = -1.0
TRAIT_MAX = 1.0

# Short labels used in log lines and data snapshots
TRAIT_LABELS: dict[str, str] = {
    "aggressiveness": "Aggr",
    "confidence": "Conf",
    "emotional_stability": "Emo",
    "extraversion": "Extr",
}


@dataclass(frozen=True)
class PersonalityTraits:
    """Immutable trait vector; re-sampled as a whole at each episode reset."""

    aggressiveness: float = 0.0
    confidence: float = 0.0
    emotional_stability: float = 0.0
    extraversion: float = 0.0

    def __post_init__(self) -> None:
        for name in TRAIT_NAMES:
            value = getattr(self, name)
            if not TRAIT_MIN <= value <= TRAIT_MAX:
                raise ValueError(
                    f"Trait '{name}'={value} outside [{TRAIT_MIN}, {TRAIT_MAX}]"
                )

    @classmethod
    def random(cls, rng: np.random.Generator | None = None) -> PersonalityTraits:
        """Sample every trait independently from U[-1, 1]."""
        rng = rng or np.random.default_rng()
        values = rng.uniform(TRAIT_MIN, TRAIT_MAX, size=TRAIT_COUNT)
        return cls(*(float(v) for v in values))

    @classmethod
    def clipped(cls, **values: float) -> PersonalityTraits:
        """Build traits from arbitrary values, clamping each into range."""
        return cls(**{
            name: float(np.clip(v, TRAIT_MIN, TRAIT_MAX))
            for name, v in values.items()
        })

    @classmethod
    def from_array(cls, values: np.ndarray | list[float]) -> PersonalityTraits:
        if len(values) != TRAIT_COUNT:
            raise ValueError(f"Expected {TRAIT_COUNT} trait values, got {len(values)}")
        return cls(*(float(v) for v in values))

    def to_array(self) -> np.ndarray:
        """Fixed-order trait vector, shape (4,)."""
        return np.array([getattr(self, n) for n in TRAIT_NAMES], dtype=np.float64)

    def to_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in TRAIT_NAMES}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PersonalityTraits:
        unknown = set(d) - set(TRAIT_NAMES)
        if unknown:
            raise KeyError(f"Unknown trait(s): {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in d.items()})

    def describe(self) -> str:
        """Compact one-line form, e.g. ``Aggr=0.42, Conf=-0.10, ...``."""
        return ", ".join(
            f"{TRAIT_LABELS[name]}={getattr(self, name):.2f}" for name in TRAIT_NAMES
        )
