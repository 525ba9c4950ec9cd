"""
Training environment: the fixed NPC pool and the episode start/end barrier.

The pool is created once and reused for every episode. Between
``end_episode()`` and the next ``start_new_episode()`` no agent is active,
and ``start_new_episode()`` finishes resetting every agent before it returns.
"""

from __future__ import annotations

import logging

import numpy as np

from npcforge.core.agent import NPCAgent
from npcforge.core.config import TrainingConfig
from npcforge.core.rewards import PersonalityRewardStrategy, RewardStrategy
from npcforge.core.traits import PersonalityTraits
from npcforge.policies.base import Policy

logger = logging.getLogger(__name__)


def _generate_name(index: int) -> str:
    return f"NPC_{index + 1}"


class EnvironmentManager:
    """Owns the agent pool and its episode lifecycle."""

    def __init__(
        self,
        config: TrainingConfig,
        policy: Policy | None = None,
        reward_strategy: RewardStrategy | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config
        self.rng = rng or np.random.default_rng(config.random_seed)
        self.policy = policy
        self.episode_active = False
        self.episodes_started = 0

        strategy = reward_strategy or PersonalityRewardStrategy.from_config(config)
        self._agents: list[NPCAgent] = [
            NPCAgent(
                id=f"npc_{i + 1:04d}",
                name=_generate_name(i),
                traits=PersonalityTraits.random(self.rng),
                reward_strategy=strategy,
                policy=policy,
            )
            for i in range(config.num_agents)
        ]
        self._by_id = {a.id: a for a in self._agents}
        logger.info("Created training environment with %d agents", len(self._agents))

    @property
    def agents(self) -> tuple[NPCAgent, ...]:
        """Read-only view of the pool."""
        return tuple(self._agents)

    def find_agent(self, agent_id: str) -> NPCAgent | None:
        return self._by_id.get(agent_id)

    # ------------------------------------------------------------------
    # Collaborator wiring
    # ------------------------------------------------------------------
    def attach_policy(self, policy: Policy | None) -> None:
        self.policy = policy
        for agent in self._agents:
            agent.policy = policy

    def set_reward_strategy(self, strategy: RewardStrategy | None) -> None:
        """Share one strategy across the pool (None restores the default)."""
        for agent in self._agents:
            agent.set_reward_strategy(strategy)

    # ------------------------------------------------------------------
    # Episode lifecycle
    # ------------------------------------------------------------------
    def start_new_episode(self) -> None:
        """Reset every agent's per-episode state, then mark the episode active."""
        for agent in self._agents:
            agent.begin_episode(self.rng)
        self.episodes_started += 1
        self.episode_active = True

    def end_episode(self) -> None:
        """Signal episode termination to every agent and mark inactive."""
        self.episode_active = False
        for agent in self._agents:
            agent.end_episode()

    def resolve_decisions(self) -> int:
        """
        Ask the policy to answer every outstanding request and apply the results.

        Returns the number of decisions closed.
        """
        if self.policy is None:
            return 0
        resolved = 0
        for request, action in self.policy.decide():
            agent = self.find_agent(request.agent_id)
            if agent is None or agent.pending_request is not request:
                logger.warning("Discarding stale answer for %r", request)
                continue
            agent.apply_action(action, request)
            resolved += 1
        return resolved
