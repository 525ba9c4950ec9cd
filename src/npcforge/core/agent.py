"""
NPC agent: personality, last event/reaction state, and the two-phase
decision protocol with the external policy.

    IDLE --handle_event--> DECISION_PENDING --apply_action--> REACTION_APPLIED
      ^                                                              |
      +------------------- reward computed and reported -------------+

An agent holds at most one outstanding DecisionRequest at a time.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import numpy as np

from npcforge.core.events import (
    DEFAULT_EVENT_TYPE,
    DEFAULT_REACTION,
    EVENT_TYPE_COUNT,
    REACTION_COUNT,
    Reaction,
    TriggerEventType,
    encode_event_type,
    encode_reaction,
    instigator_ref,
)
from npcforge.core.rewards import RewardStrategy, default_strategy
from npcforge.core.traits import TRAIT_COUNT, TRAIT_NAMES, PersonalityTraits

if TYPE_CHECKING:
    from npcforge.policies.base import Policy

logger = logging.getLogger(__name__)

OBSERVATION_SIZE = TRAIT_COUNT + EVENT_TYPE_COUNT + REACTION_COUNT

# Slices into the observation vector
TRAIT_SLICE = slice(0, TRAIT_COUNT)
EVENT_SLICE = slice(TRAIT_COUNT, TRAIT_COUNT + EVENT_TYPE_COUNT)
REACTION_SLICE = slice(TRAIT_COUNT + EVENT_TYPE_COUNT, OBSERVATION_SIZE)

_request_ids = itertools.count(1)


class DecisionProtocolError(RuntimeError):
    """A decision request/response was issued out of order."""


class AgentState(Enum):
    IDLE = "idle"
    DECISION_PENDING = "decision_pending"
    REACTION_APPLIED = "reaction_applied"


@dataclass(frozen=True, eq=False)
class DecisionRequest:
    """Token for one outstanding decision; closed by ``apply_action``."""
    request_id: int
    agent_id: str
    event_type: TriggerEventType
    observation: np.ndarray

    def __repr__(self) -> str:
        return (
            f"DecisionRequest(id={self.request_id}, agent={self.agent_id!r}, "
            f"event={self.event_type.value})"
        )


def split_observation(
    observation: np.ndarray,
) -> tuple[PersonalityTraits, TriggerEventType, Reaction]:
    """Decode an observation vector back into traits, event and reaction."""
    if observation.shape != (OBSERVATION_SIZE,):
        raise ValueError(
            f"Observation must have shape ({OBSERVATION_SIZE},), got {observation.shape}"
        )
    traits = PersonalityTraits.clipped(**{
        name: float(v) for name, v in zip(TRAIT_NAMES, observation[TRAIT_SLICE])
    })
    event_type = list(TriggerEventType)[int(np.argmax(observation[EVENT_SLICE]))]
    reaction = list(Reaction)[int(np.argmax(observation[REACTION_SLICE]))]
    return traits, event_type, reaction


@dataclass(eq=False)
class NPCAgent:
    """A trainable NPC whose personality shapes the reward for each reaction."""

    # === Identity ===
    id: str
    name: str

    # === Personality ===
    traits: PersonalityTraits = field(default_factory=PersonalityTraits.random)

    # === Collaborators ===
    reward_strategy: RewardStrategy | None = None
    policy: Policy | None = field(default=None, repr=False)

    # === Decision state ===
    reaction: Reaction = DEFAULT_REACTION
    event_type: TriggerEventType = DEFAULT_EVENT_TYPE
    state: AgentState = AgentState.IDLE
    pending_request: DecisionRequest | None = field(default=None, repr=False)

    # === Per-episode bookkeeping ===
    episode_reward: float = 0.0
    episode_decisions: list[dict[str, Any]] = field(default_factory=list, repr=False)

    _instigator: Callable[[], Any] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.reward_strategy is None:
            self.reward_strategy = default_strategy()

    # ------------------------------------------------------------------
    # Collaborator wiring
    # ------------------------------------------------------------------
    def set_reward_strategy(self, strategy: RewardStrategy | None) -> None:
        """Swap the reward strategy; ``None`` restores the standard one."""
        self.reward_strategy = strategy if strategy is not None else default_strategy()

    @property
    def instigator(self) -> Any:
        """Whoever caused the current event, if still alive."""
        return self._instigator() if self._instigator is not None else None

    # ------------------------------------------------------------------
    # Episode lifecycle
    # ------------------------------------------------------------------
    def begin_episode(self, rng: np.random.Generator | None = None) -> None:
        """Re-sample traits and reset reaction/event state to defaults."""
        self.traits = PersonalityTraits.random(rng)
        self.reaction = DEFAULT_REACTION
        self.event_type = DEFAULT_EVENT_TYPE
        self._instigator = None
        self.state = AgentState.IDLE
        self.pending_request = None
        self.episode_reward = 0.0
        self.episode_decisions = []
        if self.policy is not None:
            self.policy.on_episode_begin(self.id)

    def end_episode(self) -> None:
        """Tell the policy this agent's episode is over."""
        if self.pending_request is not None:
            logger.warning(
                "%s: dropping unresolved %r at episode end", self.name, self.pending_request,
            )
            if self.policy is not None:
                self.policy.cancel(self.pending_request)
            self.pending_request = None
            self.state = AgentState.IDLE
        if self.policy is not None:
            self.policy.on_episode_end(self.id)

    # ------------------------------------------------------------------
    # Decision protocol
    # ------------------------------------------------------------------
    def handle_event(
        self, event_type: TriggerEventType, instigator: Any = None,
    ) -> DecisionRequest:
        """Record an event and issue a decision request to the policy."""
        if self.state is AgentState.DECISION_PENDING:
            raise DecisionProtocolError(
                f"{self.name} already has an outstanding decision "
                f"({self.pending_request!r})"
            )

        self.event_type = event_type
        self._instigator = instigator_ref(instigator)
        logger.debug(
            "Event started: %s - %s", event_type.value, getattr(instigator, "name", instigator),
        )

        request = DecisionRequest(
            request_id=next(_request_ids),
            agent_id=self.id,
            event_type=event_type,
            observation=self.collect_observations(),
        )
        self.pending_request = request
        self.state = AgentState.DECISION_PENDING
        if self.policy is not None:
            self.policy.request_decision(request)
        return request

    def apply_action(
        self, action_index: int, request: DecisionRequest | None = None,
    ) -> float:
        """
        Close the pending decision with the policy's action.

        Out-of-range indices are folded into the reaction range with modulo.
        Returns the reward that was reported to the policy.
        """
        if self.pending_request is None:
            raise DecisionProtocolError(f"{self.name} has no outstanding decision")
        if request is not None and request is not self.pending_request:
            raise DecisionProtocolError(
                f"{self.name}: {request!r} is not the outstanding decision "
                f"({self.pending_request!r})"
            )

        reaction = Reaction.from_action(action_index)
        # Nothing changes until the reward is known
        reward = float(self.reward_strategy.calculate_reward(
            self.traits, reaction, self.event_type,
        ))

        self.reaction = reaction
        self.state = AgentState.REACTION_APPLIED
        if self.policy is not None:
            self.policy.add_reward(self.id, reward)

        self.episode_reward += reward
        self.episode_decisions.append({
            "event_type": self.event_type.value,
            "reaction": self.reaction.value,
            "reward": reward,
        })
        logger.debug(
            "NPC reaction: %s to %s, Reward: %.4f, Personality: %s",
            self.reaction.value, self.event_type.value, reward, self.traits.describe(),
        )

        self.pending_request = None
        self.state = AgentState.IDLE
        return reward

    # Shorthand triggers
    def player_spotted(self, player: Any = None) -> DecisionRequest:
        return self.handle_event(TriggerEventType.PLAYER_SPOTTED, player)

    def take_damage(self, attacker: Any = None) -> DecisionRequest:
        return self.handle_event(TriggerEventType.ATTACKED, attacker)

    def item_stolen(self, thief: Any = None) -> DecisionRequest:
        return self.handle_event(TriggerEventType.STEAL, thief)

    # ------------------------------------------------------------------
    # Observation & presentation
    # ------------------------------------------------------------------
    def collect_observations(self) -> np.ndarray:
        """Traits (4), event one-hot (3), previous reaction one-hot (4)."""
        obs = np.concatenate([
            self.traits.to_array().astype(np.float32),
            encode_event_type(self.event_type),
            encode_reaction(self.reaction),
        ])
        assert obs.shape == (OBSERVATION_SIZE,), obs.shape
        return obs

    def display_values(self) -> dict[str, str]:
        """Text for a presentation layer; never read back by the simulation."""
        t = self.traits
        action = "-" if self.reaction is Reaction.DO_NOTHING else self.reaction.value
        return {
            "personality": (
                f"Aggressiveness: {t.aggressiveness:.2f}\n"
                f"Confidence: {t.confidence:.2f}\n"
                f"Emotional Stability: {t.emotional_stability:.2f}\n"
                f"Extraversion: {t.extraversion:.2f}"
            ),
            "reaction": f"Action: {action}",
            "event": f"Event: {self.event_type.value}",
        }

    def __repr__(self) -> str:
        return (
            f"NPCAgent(id={self.id!r}, name={self.name!r}, state={self.state.value}, "
            f"reaction={self.reaction.value}, event={self.event_type.value})"
        )
