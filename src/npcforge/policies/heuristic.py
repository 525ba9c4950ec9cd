"""
Stand-in policies for running the training loop without a learner.

RandomPolicy explores uniformly, ScriptedPolicy replays a fixed action
sequence (useful in tests), and SoftmaxRewardPolicy picks reactions by a
temperature-scaled softmax over the reward each reaction would earn.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

from npcforge.core.agent import split_observation
from npcforge.core.events import REACTION_COUNT, Reaction
from npcforge.core.rewards import RewardStrategy, default_strategy
from npcforge.policies.base import Policy

if TYPE_CHECKING:
    from npcforge.core.agent import DecisionRequest


class RandomPolicy(Policy):
    """Uniform random action over the reaction range."""

    def __init__(self, rng: np.random.Generator | None = None):
        super().__init__()
        self.rng = rng or np.random.default_rng()

    def choose_action(self, request: DecisionRequest) -> int:
        return int(self.rng.integers(0, REACTION_COUNT))


class ScriptedPolicy(Policy):
    """Cycles through a fixed list of action indices."""

    def __init__(self, actions: Sequence[int]):
        super().__init__()
        if not actions:
            raise ValueError("ScriptedPolicy needs at least one action")
        self.actions = list(actions)
        self._cursor = 0

    def choose_action(self, request: DecisionRequest) -> int:
        action = self.actions[self._cursor % len(self.actions)]
        self._cursor += 1
        return action


class SoftmaxRewardPolicy(Policy):
    """
    Reward-aware baseline: softmax over each reaction's shaped reward.

    Decodes traits and event type from the observation vector, scores every
    reaction with ``strategy``, and samples with ``temperature``. A
    temperature of zero or less always picks the best reaction.
    """

    def __init__(
        self,
        strategy: RewardStrategy | None = None,
        temperature: float = 0.5,
        rng: np.random.Generator | None = None,
    ):
        super().__init__()
        self.strategy = strategy if strategy is not None else default_strategy()
        self.temperature = temperature
        self.rng = rng or np.random.default_rng()

    def action_probabilities(self, request: DecisionRequest) -> np.ndarray:
        traits, event_type, _ = split_observation(request.observation)
        table = self.strategy.reward_table(traits, event_type)
        values = np.array([table[r] for r in Reaction])
        return self._softmax(values, self.temperature)

    def choose_action(self, request: DecisionRequest) -> int:
        probs = self.action_probabilities(request)
        return int(self.rng.choice(len(probs), p=probs))

    @staticmethod
    def _softmax(values: np.ndarray, temperature: float) -> np.ndarray:
        """Numerically stable softmax with temperature scaling."""
        if temperature <= 0:
            # Deterministic: pick the max
            result = np.zeros_like(values)
            result[np.argmax(values)] = 1.0
            return result

        scaled = (values - values.max()) / temperature
        exp_vals = np.exp(scaled)
        return exp_vals / exp_vals.sum()
