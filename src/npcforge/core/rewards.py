"""
Personality-conditioned reward shaping.

Scores how well a reaction fits an NPC's personality for a given trigger
event. Every contribution is one of two shapes:

  alignment      +multiplier * value           (reaction matches the trait)
  contradiction  -penalty_multiplier * |value| (reaction contradicts it)

gated by a literal threshold on one or two traits. The result is

  reward = baseline_reward + event_term(reaction, traits)

Only the three multipliers are tunable; thresholds and coefficients are fixed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from npcforge.core.events import Reaction, TriggerEventType
from npcforge.core.traits import PersonalityTraits

if TYPE_CHECKING:
    from npcforge.core.config import TrainingConfig


class RewardStrategy(ABC):
    """Pure scoring function over (traits, reaction, event type)."""

    @abstractmethod
    def calculate_reward(
        self,
        traits: PersonalityTraits,
        reaction: Reaction,
        event_type: TriggerEventType,
    ) -> float:
        """Return the scalar reward for one decision."""

    def reward_table(
        self, traits: PersonalityTraits, event_type: TriggerEventType,
    ) -> dict[Reaction, float]:
        """Reward for every reaction, in action-index order."""
        return {
            reaction: self.calculate_reward(traits, reaction, event_type)
            for reaction in Reaction
        }

    def best_reaction(
        self, traits: PersonalityTraits, event_type: TriggerEventType,
    ) -> Reaction:
        """Highest-reward reaction; ties go to the lower action index."""
        table = self.reward_table(traits, event_type)
        return max(Reaction, key=lambda r: (table[r], -r.index))


class PersonalityRewardStrategy(RewardStrategy):
    """
    Standard strategy: rewards trait-aligned reactions, penalises contradictions.

    Parameters
    ----------
    base_reward_multiplier : float
        Scale for alignment contributions.
    penalty_multiplier : float
        Scale for contradiction contributions.
    baseline_reward : float
        Constant added to every decision so no reaction scores exactly zero
        by default.
    """

    def __init__(
        self,
        base_reward_multiplier: float = 1.0,
        penalty_multiplier: float = 0.8,
        baseline_reward: float = 0.1,
    ):
        self.base_reward_multiplier = float(base_reward_multiplier)
        self.penalty_multiplier = float(penalty_multiplier)
        self.baseline_reward = float(baseline_reward)

    @classmethod
    def from_config(cls, config: TrainingConfig) -> PersonalityRewardStrategy:
        return cls(
            base_reward_multiplier=config.base_reward_multiplier,
            penalty_multiplier=config.penalty_multiplier,
            baseline_reward=config.baseline_reward,
        )

    def calculate_reward(
        self,
        traits: PersonalityTraits,
        reaction: Reaction,
        event_type: TriggerEventType,
    ) -> float:
        if event_type is TriggerEventType.PLAYER_SPOTTED:
            term = self._player_spotted(reaction, traits)
        elif event_type is TriggerEventType.ATTACKED:
            term = self._attacked(reaction, traits)
        elif event_type is TriggerEventType.STEAL:
            term = self._steal(reaction, traits)
        else:
            term = 0.0
        return self.baseline_reward + term

    # ------------------------------------------------------------------
    # Per-event terms
    # ------------------------------------------------------------------
    def _player_spotted(self, reaction: Reaction, t: PersonalityTraits) -> float:
        mult, pen = self.base_reward_multiplier, self.penalty_multiplier
        aggr, conf = t.aggressiveness, t.confidence
        emo, extr = t.emotional_stability, t.extraversion
        reward = 0.0

        if reaction is Reaction.ATTACK:
            if aggr > 0.3:
                reward += mult * aggr
            elif aggr < 0.0:
                reward -= pen * abs(aggr)

        elif reaction is Reaction.GREET:
            if extr > 0.3:
                reward += mult * extr
            if conf > 0.3:
                reward += mult * conf * 0.5
            if extr < -0.3:
                reward -= pen * abs(extr)

        elif reaction is Reaction.FLEE:
            if conf < -0.3:
                reward += mult * abs(conf)
            if aggr < -0.3:
                reward += mult * abs(aggr) * 0.7
            if conf > 0.5:
                reward -= pen * conf

        elif reaction is Reaction.DO_NOTHING:
            if emo > 0.3:
                reward += mult * emo * 0.8
            if extr < -0.3:
                reward += mult * abs(extr) * 0.6

        return reward

    def _attacked(self, reaction: Reaction, t: PersonalityTraits) -> float:
        mult, pen = self.base_reward_multiplier, self.penalty_multiplier
        aggr, conf = t.aggressiveness, t.confidence
        emo, extr = t.emotional_stability, t.extraversion
        reward = 0.0

        if reaction is Reaction.ATTACK:
            if aggr > 0.0:
                reward += mult * aggr
            if conf > 0.0:
                reward += mult * conf * 0.5
            if emo < -0.5:
                reward += mult * abs(emo) * 0.5
            if aggr < -0.7:
                reward -= pen * abs(aggr)

        elif reaction is Reaction.FLEE:
            if aggr < 0.0:
                reward += mult * abs(aggr)
            if conf < 0.0:
                reward += mult * abs(conf) * 0.7
            if aggr > 0.7 and conf > 0.7:
                reward -= pen * ((aggr + conf) / 2)

        elif reaction is Reaction.DO_NOTHING:
            if emo > 0.5:
                reward += mult * emo
            if emo < -0.5:
                reward -= pen * abs(emo) * 0.7

        elif reaction is Reaction.GREET:
            # Greeting an attacker is penalised unless extremely outgoing and calm
            reward -= pen * 0.8
            if extr > 0.8 and emo > 0.8:
                reward += mult * 0.3

        return reward

    def _steal(self, reaction: Reaction, t: PersonalityTraits) -> float:
        mult, pen = self.base_reward_multiplier, self.penalty_multiplier
        aggr, conf = t.aggressiveness, t.confidence
        emo = t.emotional_stability
        reward = 0.0

        if reaction is Reaction.ATTACK:
            if aggr > 0.3:
                reward += mult * aggr
            if emo < -0.3:
                reward += mult * abs(emo) * 0.5
            if aggr < -0.7:
                reward -= pen * abs(aggr) * 0.7

        elif reaction is Reaction.DO_NOTHING:
            if conf < -0.2:
                reward += mult * abs(conf) * 0.7
            if emo > 0.5:
                reward += mult * emo * 0.5

        elif reaction is Reaction.FLEE:
            if aggr < -0.3:
                reward += mult * abs(aggr)
            if conf < -0.3:
                reward += mult * abs(conf) * 0.7

        elif reaction is Reaction.GREET:
            reward -= pen

        return reward

    def __repr__(self) -> str:
        return (
            f"PersonalityRewardStrategy(base={self.base_reward_multiplier}, "
            f"penalty={self.penalty_multiplier}, baseline={self.baseline_reward})"
        )


def default_strategy() -> RewardStrategy:
    """The strategy substituted whenever none (or None) is supplied."""
    return PersonalityRewardStrategy()
