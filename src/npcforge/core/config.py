"""
Master configuration for npcforge training runs.

ALL tunable parameters live here: episode timing, event budget, logging
cadence, simulation speed, and the reward-strategy multipliers.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

from npcforge.core.events import TriggerEventType


class ConfigError(ValueError):
    """Raised when a TrainingConfig fails validation."""


@dataclass
class TrainingConfig:
    """
    Master configuration for one training run.

    Use ``validate()`` before starting training, and ``to_dict()`` /
    ``from_dict()`` for serialization and comparison.
    """

    # === Experiment identity ===
    experiment_name: str = "default"
    random_seed: int | None = None

    # === Agent pool ===
    num_agents: int = 10

    # === Event generation ===
    # Event type values in broadcast order; empty means every TriggerEventType.
    training_events: list[str] = field(default_factory=list)
    events_per_episode: int = 2
    event_delay: float = 1.0  # Seconds of episode time between events

    # === Episodes ===
    episode_duration: float = 5.0
    max_episodes: int = 10000

    # === Analysis ===
    collect_personality_data: bool = True
    log_frequency: int = 100

    # === Time ===
    simulation_speed_multiplier: float = 10.0
    tick_interval: float = 0.02  # Unscaled seconds per tick in run()

    # === Reward strategy ===
    base_reward_multiplier: float = 1.0
    penalty_multiplier: float = 0.8
    baseline_reward: float = 0.1

    # === Demo policy ===
    policy_temperature: float = 0.5  # Softmax temperature; <= 0 means greedy

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------
    @property
    def event_types(self) -> list[TriggerEventType]:
        """Resolved event types; every type when none are configured."""
        if not self.training_events:
            return list(TriggerEventType)
        return [TriggerEventType.from_name(name) for name in self.training_events]

    def validate(self) -> TrainingConfig:
        """Check every field; raise ConfigError listing all problems."""
        problems: list[str] = []

        if self.num_agents < 0:
            problems.append(f"num_agents must be >= 0 (got {self.num_agents})")
        if self.events_per_episode < 0:
            problems.append(
                f"events_per_episode must be >= 0 (got {self.events_per_episode})"
            )
        if self.max_episodes < 1:
            problems.append(f"max_episodes must be >= 1 (got {self.max_episodes})")
        if self.log_frequency < 1:
            problems.append(f"log_frequency must be >= 1 (got {self.log_frequency})")

        # Timing fields must be finite and positive
        for name in (
            "episode_duration", "event_delay",
            "simulation_speed_multiplier", "tick_interval",
        ):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                problems.append(f"{name} must be a finite number > 0 (got {value})")

        for name in self.training_events:
            try:
                TriggerEventType.from_name(name)
            except KeyError as exc:
                problems.append(str(exc.args[0]))

        if problems:
            raise ConfigError("Invalid training config: " + "; ".join(problems))
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = list(v) if isinstance(v, list) else v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TrainingConfig:
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> TrainingConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: TrainingConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
