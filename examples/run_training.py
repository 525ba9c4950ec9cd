#!/usr/bin/env python3
"""Run a short npcforge training session and print per-episode results."""

import logging

from npcforge.core.config import TrainingConfig
from npcforge.experiment.runner import TrainingRunner


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("npcforge.metrics").setLevel(logging.INFO)

    config = TrainingConfig(
        experiment_name="demo",
        num_agents=8,
        events_per_episode=3,
        episode_duration=4.0,
        event_delay=1.0,
        max_episodes=20,
        log_frequency=10,
        random_seed=42,
    )

    print(f"=== npcforge: {config.experiment_name} ===")
    print(f"Agents: {config.num_agents}")
    print(f"Episodes: {config.max_episodes}")
    print(f"Events: {[e.value for e in config.event_types]} x{config.events_per_episode}")
    print()

    result = TrainingRunner().run_training(config)

    reactions = [r for r in result.history[0].reaction_counts]
    header = f"{'Ep':>4} {'Events':>6} {'Dec':>4} {'MeanR':>7} " + " ".join(
        f"{r[:8]:>8}" for r in reactions
    )
    print(header)
    print("-" * len(header))
    for s in result.history:
        print(
            f"{s.episode:4d} {s.events_triggered:6d} {s.decisions:4d} "
            f"{s.mean_reward:7.3f} "
            + " ".join(f"{s.reaction_counts[r]:8d}" for r in reactions)
        )

    print()
    print(f"=== Summary ===")
    print(f"Episodes completed: {result.episodes_completed}")
    print(f"Total decisions: {result.total_decisions}")
    print(f"Mean reward: {result.mean_reward:.3f}")
    print("Reaction distribution:")
    for reaction, frac in result.reaction_distribution.items():
        print(f"  {reaction:12s}: {frac * 100:5.1f}%")


if __name__ == "__main__":
    main()
