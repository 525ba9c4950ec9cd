"""
Training presets: pre-configured TrainingConfig templates.
"""

from __future__ import annotations

from typing import Callable

from npcforge.core.config import TrainingConfig


def baseline() -> TrainingConfig:
    """Standard configuration: 10 agents, 5 s episodes, 2 events each."""
    return TrainingConfig(experiment_name="baseline")


def quick_smoke() -> TrainingConfig:
    """A handful of short episodes with a small pool, for tests and demos."""
    return TrainingConfig(
        experiment_name="quick_smoke",
        num_agents=4,
        events_per_episode=3,
        episode_duration=4.0,
        event_delay=1.0,
        max_episodes=5,
        log_frequency=1,
        simulation_speed_multiplier=10.0,
    )


def full_coverage() -> TrainingConfig:
    """One event of each type per episode, spaced evenly."""
    return TrainingConfig(
        experiment_name="full_coverage",
        events_per_episode=3,
        episode_duration=4.0,
        event_delay=1.0,
        max_episodes=100,
        log_frequency=10,
    )


def hostile_world() -> TrainingConfig:
    """Only attacks and theft; greeting is never appropriate."""
    return TrainingConfig(
        experiment_name="hostile_world",
        training_events=["attacked", "steal"],
        events_per_episode=4,
        episode_duration=5.0,
        max_episodes=100,
        log_frequency=10,
    )


def harsh_penalties() -> TrainingConfig:
    """Contradictions cost twice as much and there is no baseline reward."""
    return TrainingConfig(
        experiment_name="harsh_penalties",
        events_per_episode=3,
        episode_duration=4.0,
        max_episodes=100,
        log_frequency=10,
        penalty_multiplier=1.6,
        baseline_reward=0.0,
    )


# Registry of all presets
PRESETS: dict[str, Callable[[], TrainingConfig]] = {
    "baseline": baseline,
    "quick_smoke": quick_smoke,
    "full_coverage": full_coverage,
    "hostile_world": hostile_world,
    "harsh_penalties": harsh_penalties,
}


def get_preset(name: str) -> TrainingConfig:
    """Get a preset configuration by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """List all available preset names."""
    return list(PRESETS.keys())
