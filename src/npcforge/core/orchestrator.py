"""
Episodic training orchestrator.

Drives the simulation clock tick by tick:

1. Scale the tick delta by the simulation speed multiplier
2. Fire every event whose scheduled episode time has been reached,
   resolving the resulting decisions through the policy
3. On episode expiry: close outstanding decisions, end the episode,
   record an EpisodeSummary, then start the next episode or stop training
4. Snapshot personality data at each episode start (gated by the
   collector's cadence) and once more, forced, at training end

Event and episode-end times are measured on the episode clock, so the
speed multiplier changes how fast they arrive but never their order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from npcforge.core.config import TrainingConfig
from npcforge.core.environment import EnvironmentManager
from npcforge.core.events import Reaction, TriggerEventType
from npcforge.core.generator import EventGenerator, RoundRobinEventGenerator
from npcforge.metrics.collector import DataCollector, PersonalityDataCollector

logger = logging.getLogger(__name__)


class TrainingSetupError(RuntimeError):
    """Training cannot start (e.g. no environment manager)."""


class TrainingState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


# ---------------------------------------------------------------------------
# Per-episode summary
# ---------------------------------------------------------------------------
@dataclass
class EpisodeSummary:
    """What happened during one episode."""
    episode: int
    events_triggered: int
    decisions: int
    total_reward: float
    mean_reward: float
    reaction_counts: dict[str, int]
    event_counts: dict[str, int]
    agent_rewards: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "episode": self.episode,
            "events_triggered": self.events_triggered,
            "decisions": self.decisions,
            "total_reward": self.total_reward,
            "mean_reward": self.mean_reward,
            "reaction_counts": dict(self.reaction_counts),
            "event_counts": dict(self.event_counts),
            "agent_rewards": dict(self.agent_rewards),
        }


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
class TrainingOrchestrator:
    """
    Top-level training scheduler.

    State machine: STOPPED -> RUNNING -> STOPPED. A stopped orchestrator only
    runs again through an explicit ``start_training()``.
    """

    name = "TrainingOrchestrator"

    def __init__(
        self,
        config: TrainingConfig,
        environment: EnvironmentManager | None = None,
        event_generator: EventGenerator | None = None,
        data_collector: DataCollector | None = None,
    ):
        self.config = config
        self.environment = environment
        self.event_generator = event_generator
        self.data_collector = data_collector

        # State
        self.state = TrainingState.STOPPED
        self.speed_multiplier = 1.0
        self.episode_count = 0
        self.episode_time = 0.0
        self.next_event_time = 0.0
        self.total_time = 0.0
        self.history: list[EpisodeSummary] = []
        self.runs_completed = 0

    # ------------------------------------------------------------------
    # Dependency injection
    # ------------------------------------------------------------------
    def set_event_generator(self, generator: EventGenerator | None) -> None:
        self.event_generator = generator

    def set_data_collector(self, collector: DataCollector | None) -> None:
        self.data_collector = collector

    def _initialize_components(self) -> None:
        """Fill in default generator/collector when none were injected."""
        if self.event_generator is None:
            self.event_generator = RoundRobinEventGenerator(
                self.config.event_types, self.config.events_per_episode,
            )
        if self.data_collector is None and self.config.collect_personality_data:
            self.data_collector = PersonalityDataCollector(self.config.log_frequency)

    @property
    def is_running(self) -> bool:
        return self.state is TrainingState.RUNNING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_training(self) -> None:
        """Validate configuration and begin the first episode."""
        if self.environment is None:
            logger.error("No environment manager found. Cannot start training.")
            raise TrainingSetupError("No environment manager found. Cannot start training.")
        if self.is_running:
            raise TrainingSetupError("Training is already running")

        self.config.validate()
        self._initialize_components()
        if self.environment.policy is None:
            logger.warning(
                "No policy attached; decisions must be applied to agents externally"
            )

        self.speed_multiplier = self.config.simulation_speed_multiplier
        self.episode_count = 0
        self.total_time = 0.0
        self.history = []
        self.state = TrainingState.RUNNING
        logger.info(
            "Starting NPC personality training: %d agents, %d episodes",
            len(self.environment.agents), self.config.max_episodes,
        )
        self._start_new_episode()

    def stop_training(self) -> None:
        """Stop early, closing the current episode."""
        if not self.is_running:
            return
        self._end_current_episode()
        self._end_training()

    def tick(self, delta: float) -> None:
        """Advance the simulation by ``delta`` unscaled seconds."""
        if not self.is_running:
            return
        if delta < 0:
            raise ValueError(f"Tick delta must be >= 0 (got {delta})")

        scaled = delta * self.speed_multiplier
        self.episode_time += scaled
        self.total_time += scaled

        duration = self.config.episode_duration
        while (
            self.next_event_time <= self.episode_time
            and self.next_event_time <= duration
        ):
            self._trigger_event()
            self.next_event_time += self.config.event_delay

        if self.episode_time >= duration:
            self._end_current_episode()
            if self.episode_count < self.config.max_episodes:
                self._start_new_episode()
            else:
                self._end_training()

    def run(
        self, tick_interval: float | None = None, max_ticks: int | None = None,
    ) -> list[EpisodeSummary]:
        """
        Start (if needed) and tick until training stops.

        Returns the per-episode summaries. ``max_ticks`` guards against
        configurations that would run for a very long time.
        """
        tick_interval = tick_interval or self.config.tick_interval
        if not self.is_running:
            self.start_training()

        ticks = 0
        while self.is_running:
            if max_ticks is not None and ticks >= max_ticks:
                raise RuntimeError(f"Training did not finish within {max_ticks} ticks")
            self.tick(tick_interval)
            ticks += 1
        return self.history

    # ------------------------------------------------------------------
    # Episode handling
    # ------------------------------------------------------------------
    def _start_new_episode(self) -> None:
        self.episode_count += 1
        self.episode_time = 0.0
        self.next_event_time = self.config.event_delay  # First event after delay

        self.event_generator.reset()
        self.environment.start_new_episode()
        self._snapshot()

        if self.episode_count % self.config.log_frequency == 0:
            logger.info("Starting episode %d/%d", self.episode_count, self.config.max_episodes)

    def _end_current_episode(self) -> None:
        self.environment.resolve_decisions()
        self.history.append(self._summarize_episode())
        self.environment.end_episode()

    def _end_training(self) -> None:
        self.state = TrainingState.STOPPED
        self.runs_completed += 1
        logger.info("NPC personality training completed after %d episodes", self.episode_count)

        self._snapshot(force=True)
        self.speed_multiplier = 1.0

    def _trigger_event(self) -> None:
        event = self.event_generator.generate_event(self.environment.agents, self)
        if event is not None:
            self.environment.resolve_decisions()

    def _snapshot(self, force: bool = False) -> None:
        if self.data_collector is not None:
            self.data_collector.collect_data(
                self.environment.agents, self.episode_count, force=force,
            )

    def _summarize_episode(self) -> EpisodeSummary:
        agents = self.environment.agents
        rewards: list[float] = []
        reaction_counts = {r.value: 0 for r in Reaction}
        event_counts = {e.value: 0 for e in TriggerEventType}
        for agent in agents:
            for d in agent.episode_decisions:
                rewards.append(d["reward"])
                reaction_counts[d["reaction"]] += 1
                event_counts[d["event_type"]] += 1

        total = float(np.sum(rewards)) if rewards else 0.0
        return EpisodeSummary(
            episode=self.episode_count,
            events_triggered=self.event_generator.events_triggered,
            decisions=len(rewards),
            total_reward=total,
            mean_reward=float(np.mean(rewards)) if rewards else 0.0,
            reaction_counts=reaction_counts,
            event_counts=event_counts,
            agent_rewards={a.id: a.episode_reward for a in agents},
        )
