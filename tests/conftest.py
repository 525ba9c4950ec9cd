"""
Shared test configuration.

Provides a small, fast TrainingConfig and an environment driven by a
scripted policy so orchestration tests are fully deterministic.
"""

import pytest

from npcforge.core.config import TrainingConfig
from npcforge.core.environment import EnvironmentManager
from npcforge.policies.heuristic import ScriptedPolicy


@pytest.fixture
def small_config():
    return TrainingConfig(
        experiment_name="test",
        random_seed=42,
        num_agents=3,
        events_per_episode=3,
        episode_duration=4.0,
        event_delay=1.0,
        max_episodes=2,
        log_frequency=1,
        simulation_speed_multiplier=1.0,
    )


@pytest.fixture
def attack_policy():
    """Always answers with action 3 (Attack)."""
    return ScriptedPolicy([3])


@pytest.fixture
def scripted_env(small_config, attack_policy):
    return EnvironmentManager(small_config, policy=attack_policy)
