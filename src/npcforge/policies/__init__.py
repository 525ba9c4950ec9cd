"""Decision policies: the external-policy interface and stand-in implementations."""

from npcforge.policies.base import Policy
from npcforge.policies.heuristic import RandomPolicy, ScriptedPolicy, SoftmaxRewardPolicy

__all__ = [
    "Policy",
    "RandomPolicy",
    "ScriptedPolicy",
    "SoftmaxRewardPolicy",
]
