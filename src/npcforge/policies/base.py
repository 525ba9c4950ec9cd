"""
Interface to the external decision-making policy.

The policy sees only observation vectors and scalar rewards. Requests are
queued by agents (``request_decision``) and answered later in one batch
(``decide``), so a broadcast to many agents is resolved as a single step.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npcforge.core.agent import DecisionRequest


class Policy(ABC):
    """
    Base class for policies driving NPC agents.

    Subclasses implement ``choose_action``; queueing, reward accounting and
    episode bookkeeping are shared.
    """

    def __init__(self) -> None:
        self._queue: list[DecisionRequest] = []
        self.episode_rewards: dict[str, float] = defaultdict(float)
        self.completed_episode_rewards: dict[str, list[float]] = defaultdict(list)
        self.decisions_made = 0

    @abstractmethod
    def choose_action(self, request: DecisionRequest) -> int:
        """Return an action index for one request (any int is accepted)."""

    # --- Request/response ---

    def request_decision(self, request: DecisionRequest) -> None:
        self._queue.append(request)

    def cancel(self, request: DecisionRequest) -> None:
        """Withdraw a queued request that will never be answered."""
        self._queue = [r for r in self._queue if r is not request]

    @property
    def pending(self) -> list[DecisionRequest]:
        return list(self._queue)

    def decide(self) -> list[tuple[DecisionRequest, int]]:
        """Answer every queued request, in the order they were issued."""
        queue, self._queue = self._queue, []
        answers = [(request, self.choose_action(request)) for request in queue]
        self.decisions_made += len(answers)
        return answers

    # --- Training signal ---

    def add_reward(self, agent_id: str, reward: float) -> None:
        self.episode_rewards[agent_id] += reward

    def on_episode_begin(self, agent_id: str) -> None:
        self.episode_rewards[agent_id] = 0.0

    def on_episode_end(self, agent_id: str) -> None:
        self.completed_episode_rewards[agent_id].append(
            self.episode_rewards.pop(agent_id, 0.0)
        )
