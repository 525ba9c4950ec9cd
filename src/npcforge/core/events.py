"""
Event and reaction vocabularies.

Both enums are closed: their member order defines one-hot slot order and,
for Reaction, the action-index range exposed to the policy.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import numpy as np

if TYPE_CHECKING:
    from npcforge.core.agent import NPCAgent


class TriggerEventType(Enum):
    """World stimuli an NPC can react to."""
    PLAYER_SPOTTED = "player_spotted"
    ATTACKED = "attacked"
    STEAL = "steal"

    @property
    def index(self) -> int:
        return _EVENT_ORDER.index(self)

    @classmethod
    def from_name(cls, name: str | TriggerEventType) -> TriggerEventType:
        """Resolve by value (``"steal"``) or member name (``"STEAL"``)."""
        if isinstance(name, cls):
            return name
        choices = [e.value for e in cls]
        if not isinstance(name, str):
            raise KeyError(f"Unknown event type {name!r}. Choose from: {choices}")
        try:
            return cls(name)
        except ValueError:
            pass
        try:
            return cls[name.upper()]
        except KeyError:
            raise KeyError(
                f"Unknown event type '{name}'. Choose from: {choices}"
            ) from None


class Reaction(Enum):
    """Discrete NPC output; member order is the action-index order."""
    DO_NOTHING = "do_nothing"
    FLEE = "flee"
    GREET = "greet"
    ATTACK = "attack"

    @property
    def index(self) -> int:
        return _REACTION_ORDER.index(self)

    @classmethod
    def from_action(cls, action_index: int) -> Reaction:
        """Map any integer onto a reaction via modulo."""
        return _REACTION_ORDER[int(action_index) % len(_REACTION_ORDER)]


_EVENT_ORDER: tuple[TriggerEventType, ...] = tuple(TriggerEventType)
_REACTION_ORDER: tuple[Reaction, ...] = tuple(Reaction)

EVENT_TYPE_COUNT = len(_EVENT_ORDER)
REACTION_COUNT = len(_REACTION_ORDER)

DEFAULT_EVENT_TYPE = TriggerEventType.PLAYER_SPOTTED
DEFAULT_REACTION = Reaction.DO_NOTHING


def one_hot(member: Enum, members: tuple[Enum, ...]) -> np.ndarray:
    """One-hot encode an enum member against its declared member order."""
    vec = np.zeros(len(members), dtype=np.float32)
    vec[members.index(member)] = 1.0
    return vec


def encode_event_type(event_type: TriggerEventType) -> np.ndarray:
    vec = one_hot(event_type, _EVENT_ORDER)
    assert vec.shape == (EVENT_TYPE_COUNT,)
    return vec


def encode_reaction(reaction: Reaction) -> np.ndarray:
    vec = one_hot(reaction, _REACTION_ORDER)
    assert vec.shape == (REACTION_COUNT,)
    return vec


def instigator_ref(instigator: Any) -> Callable | None:
    """Weak reference to an instigator, or None when it cannot be weakly held."""
    if instigator is None:
        return None
    try:
        return weakref.ref(instigator)
    except TypeError:
        # Plain strings/ints cannot be weakly referenced; hold them directly
        return lambda: instigator


@dataclass
class Event:
    """One broadcast: a type, who caused it, and who received it."""
    event_type: TriggerEventType
    instigator: Any = None
    targets: list[NPCAgent] = field(default_factory=list)

    @property
    def target_ids(self) -> list[str]:
        return [a.id for a in self.targets]

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "instigator": getattr(self.instigator, "name", None),
            "targets": self.target_ids,
        }
