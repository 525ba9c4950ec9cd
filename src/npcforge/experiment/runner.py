"""
Training runner for single runs, comparisons, parameter sweeps and multi-seed batches.

Each run builds a fresh environment, policy and orchestrator from a
TrainingConfig and returns the episode summaries plus aggregate stats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from npcforge.core.config import TrainingConfig
from npcforge.core.environment import EnvironmentManager
from npcforge.core.orchestrator import EpisodeSummary, TrainingOrchestrator
from npcforge.core.rewards import PersonalityRewardStrategy
from npcforge.metrics.collector import PersonalityDataCollector
from npcforge.policies.base import Policy
from npcforge.policies.heuristic import SoftmaxRewardPolicy

PolicyFactory = Callable[[TrainingConfig, np.random.Generator], Policy]


def softmax_policy_factory(config: TrainingConfig, rng: np.random.Generator) -> Policy:
    """Default policy: softmax over shaped rewards at the configured temperature."""
    return SoftmaxRewardPolicy(
        strategy=PersonalityRewardStrategy.from_config(config),
        temperature=config.policy_temperature,
        rng=rng,
    )


@dataclass
class TrainingResult:
    """Result of a single training run."""
    config: TrainingConfig
    history: list[EpisodeSummary]
    records: list[dict[str, Any]]
    episodes_completed: int
    total_decisions: int
    mean_reward: float
    reaction_distribution: dict[str, float] = field(default_factory=dict)


@dataclass
class ComparisonResult:
    """Result of comparing two or more training runs."""
    results: dict[str, TrainingResult]
    config_diffs: dict[str, Any]


class TrainingRunner:
    """
    Run, compare, and sweep training configurations.
    """

    def __init__(self, policy_factory: PolicyFactory | None = None):
        self.policy_factory = policy_factory or softmax_policy_factory

    def run_training(
        self, config: TrainingConfig, max_ticks: int | None = None,
    ) -> TrainingResult:
        """Run one full training session and return results."""
        config.validate()
        rng = np.random.default_rng(config.random_seed)
        policy = self.policy_factory(config, rng)
        environment = EnvironmentManager(config, policy=policy, rng=rng)

        collector = (
            PersonalityDataCollector(config.log_frequency)
            if config.collect_personality_data else None
        )
        orchestrator = TrainingOrchestrator(
            config, environment=environment, data_collector=collector,
        )
        history = orchestrator.run(max_ticks=max_ticks)

        total_decisions = sum(s.decisions for s in history)
        total_reward = sum(s.total_reward for s in history)

        reaction_totals: dict[str, int] = {}
        for s in history:
            for reaction, count in s.reaction_counts.items():
                reaction_totals[reaction] = reaction_totals.get(reaction, 0) + count
        distribution = {
            r: (c / total_decisions if total_decisions else 0.0)
            for r, c in reaction_totals.items()
        }

        return TrainingResult(
            config=config,
            history=history,
            records=collector.export_records() if collector else [],
            episodes_completed=len(history),
            total_decisions=total_decisions,
            mean_reward=total_reward / total_decisions if total_decisions else 0.0,
            reaction_distribution=distribution,
        )

    def compare_runs(
        self, configs: dict[str, TrainingConfig],
    ) -> ComparisonResult:
        """Run multiple configurations and compare results."""
        results = {name: self.run_training(cfg) for name, cfg in configs.items()}

        names = list(configs.keys())
        diffs: dict[str, Any] = {}
        if len(names) >= 2:
            base = configs[names[0]]
            for name in names[1:]:
                diffs[f"{names[0]}_vs_{name}"] = base.diff(configs[name])

        return ComparisonResult(results=results, config_diffs=diffs)

    def run_parameter_sweep(
        self,
        base_config: TrainingConfig,
        param_name: str,
        values: list[Any],
    ) -> dict[str, TrainingResult]:
        """
        Sweep a single parameter across multiple values.

        Args:
            base_config: Base configuration to modify
            param_name: Name of the parameter to sweep (attribute on TrainingConfig)
            values: List of values to test

        Returns:
            Dict mapping value label -> TrainingResult
        """
        if param_name not in base_config.to_dict():
            raise KeyError(f"Unknown config parameter: '{param_name}'")

        results: dict[str, TrainingResult] = {}
        for val in values:
            config_dict = base_config.to_dict()
            config_dict[param_name] = val
            config_dict["experiment_name"] = f"sweep_{param_name}={val}"
            config = TrainingConfig.from_dict(config_dict)
            results[f"{param_name}={val}"] = self.run_training(config)
        return results

    def run_multi_seed(
        self, config: TrainingConfig, seeds: list[int],
    ) -> list[TrainingResult]:
        """Run the same configuration with multiple random seeds."""
        results: list[TrainingResult] = []
        for seed in seeds:
            config_dict = config.to_dict()
            config_dict["random_seed"] = seed
            config_dict["experiment_name"] = f"{config.experiment_name}_seed{seed}"
            results.append(self.run_training(TrainingConfig.from_dict(config_dict)))
        return results
