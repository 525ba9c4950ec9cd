"""
Personality data collection during training.

Snapshots each agent's traits and last reaction every ``log_frequency``
episodes (and once more at training end) into the log as a readable block.
Records are also kept in memory for export; nothing here feeds back into
the simulation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from npcforge.core.agent import NPCAgent
from npcforge.core.traits import TRAIT_NAMES

logger = logging.getLogger(__name__)


@dataclass
class AgentRecord:
    """One agent's state at snapshot time."""
    episode: int
    agent_id: str
    name: str
    traits: dict[str, float]
    last_reaction: str
    episode_reward: float
    final: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "episode": self.episode,
            "agent_id": self.agent_id,
            "name": self.name,
            **{name: self.traits[name] for name in TRAIT_NAMES},
            "last_reaction": self.last_reaction,
            "episode_reward": self.episode_reward,
            "final": self.final,
        }


class DataCollector(ABC):
    """Periodic/terminal snapshot sink."""

    @abstractmethod
    def collect_data(
        self, agents: Sequence[NPCAgent], episode_number: int, force: bool = False,
    ) -> None:
        """Snapshot ``agents``; ``force`` bypasses the cadence check."""


class PersonalityDataCollector(DataCollector):
    """Logs a personality/reaction block per snapshot and keeps the records."""

    def __init__(self, log_frequency: int = 100):
        if log_frequency < 1:
            raise ValueError(f"log_frequency must be >= 1 (got {log_frequency})")
        self.log_frequency = log_frequency
        self.records: list[AgentRecord] = []
        self.snapshots_taken = 0

    def should_collect(self, episode_number: int) -> bool:
        return episode_number % self.log_frequency == 0

    def collect_data(
        self, agents: Sequence[NPCAgent], episode_number: int, force: bool = False,
    ) -> None:
        if not agents:
            return
        if not force and not self.should_collect(episode_number):
            return

        lines = [f"Episode {episode_number} - Personality Analysis:"]
        for agent in agents:
            lines.append(
                f"{agent.name}: {agent.traits.describe()}, "
                f"Last Reaction={agent.reaction.value}"
            )
            self.records.append(AgentRecord(
                episode=episode_number,
                agent_id=agent.id,
                name=agent.name,
                traits=agent.traits.to_dict(),
                last_reaction=agent.reaction.value,
                episode_reward=agent.episode_reward,
                final=force,
            ))
        self.snapshots_taken += 1
        logger.info("\n".join(lines))

    def export_records(self) -> list[dict[str, Any]]:
        """All collected records as JSON-serializable dicts."""
        return [r.to_dict() for r in self.records]
