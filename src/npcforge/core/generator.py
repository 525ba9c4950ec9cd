"""
Training event generators.

A generator owns a per-episode event budget and broadcasts one event type
to a whole agent pool per call. The round-robin generator walks the
configured event types in order, so every type is exercised once before any
repeats; the random generator picks uniformly and is meant for lightweight
component tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from npcforge.core.events import Event, TriggerEventType

if TYPE_CHECKING:
    from npcforge.core.agent import NPCAgent

logger = logging.getLogger(__name__)


class EventGenerator(ABC):
    """Bounded per-episode event source."""

    def __init__(
        self,
        event_types: Sequence[TriggerEventType] | None = None,
        events_per_episode: int = 2,
    ):
        self.event_types: list[TriggerEventType] = (
            list(TriggerEventType) if event_types is None else list(event_types)
        )
        if not self.event_types:
            raise ValueError("At least one event type required")
        if events_per_episode < 0:
            raise ValueError(f"events_per_episode must be >= 0 (got {events_per_episode})")
        self.events_per_episode = events_per_episode
        self.events_triggered = 0

    @property
    def exhausted(self) -> bool:
        return self.events_triggered >= self.events_per_episode

    @abstractmethod
    def select_event_type(self) -> TriggerEventType:
        """Choose the type of the next event."""

    def generate_event(
        self, agents: Sequence[NPCAgent], instigator: Any = None,
    ) -> Event | None:
        """
        Broadcast the next event to every agent in ``agents``.

        Returns the broadcast Event, or None (with a warning) when the pool is
        empty or this episode's budget is spent.
        """
        if not agents or self.exhausted:
            logger.warning(
                "No agents available or event limit reached (%d/%d).",
                self.events_triggered, self.events_per_episode,
            )
            return None

        event_type = self.select_event_type()
        event = Event(event_type=event_type, instigator=instigator, targets=list(agents))
        # Every agent gets its request before any decision is resolved
        for agent in event.targets:
            agent.handle_event(event_type, instigator)
        self.events_triggered += 1

        logger.info(
            "%s triggered for %d agents (%d/%d).",
            event_type.value, len(event.targets),
            self.events_triggered, self.events_per_episode,
        )
        return event

    def reset(self) -> None:
        """Zero the budget counter; call once at each episode start."""
        self.events_triggered = 0
        logger.debug("Event generator reset for new episode.")


class RoundRobinEventGenerator(EventGenerator):
    """Picks ``event_types[counter % len(event_types)]``."""

    def select_event_type(self) -> TriggerEventType:
        return self.event_types[self.events_triggered % len(self.event_types)]


class RandomEventGenerator(EventGenerator):
    """Uniform random pick from ``event_types``."""

    def __init__(
        self,
        event_types: Sequence[TriggerEventType] | None = None,
        events_per_episode: int = 2,
        rng: np.random.Generator | None = None,
    ):
        super().__init__(event_types, events_per_episode)
        self.rng = rng or np.random.default_rng()

    def select_event_type(self) -> TriggerEventType:
        return self.event_types[int(self.rng.integers(0, len(self.event_types)))]
