"""Tests for TrainingOrchestrator scheduling and episode rollover."""

import logging

import pytest

from npcforge.core.config import ConfigError, TrainingConfig
from npcforge.core.environment import EnvironmentManager
from npcforge.core.events import Reaction
from npcforge.core.generator import RoundRobinEventGenerator
from npcforge.core.orchestrator import (
    EpisodeSummary,
    TrainingOrchestrator,
    TrainingSetupError,
    TrainingState,
)
from npcforge.metrics.collector import PersonalityDataCollector
from npcforge.policies.heuristic import ScriptedPolicy


class SpyGenerator(RoundRobinEventGenerator):
    """Records resets/events and the agent state seen at each event."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []
        self.first_event_clean: list[bool] = []

    def reset(self):
        self.calls.append("reset")
        super().reset()

    def generate_event(self, agents, instigator=None):
        if self.events_triggered == 0:
            self.first_event_clean.append(
                all(a.reaction is Reaction.DO_NOTHING for a in agents)
            )
        event = super().generate_event(agents, instigator)
        if event is not None:
            self.calls.append("event")
        return event


def _orchestrator(config, policy=None, **kwargs):
    env = EnvironmentManager(config, policy=policy or ScriptedPolicy([3]))
    return TrainingOrchestrator(config, environment=env, **kwargs)


class TestStartup:
    def test_missing_environment_is_fatal(self, small_config, caplog):
        orch = TrainingOrchestrator(small_config)
        with caplog.at_level(logging.ERROR, logger="npcforge"):
            with pytest.raises(TrainingSetupError, match="No environment manager"):
                orch.start_training()
        assert orch.state is TrainingState.STOPPED
        assert "Cannot start training" in caplog.text

    def test_invalid_config_rejected(self, small_config):
        small_config.episode_duration = 0.0
        orch = _orchestrator(small_config)
        with pytest.raises(ConfigError, match="episode_duration"):
            orch.start_training()
        assert orch.state is TrainingState.STOPPED

    def test_start_sets_speed_and_first_episode(self, small_config):
        small_config.simulation_speed_multiplier = 10.0
        orch = _orchestrator(small_config)
        assert orch.speed_multiplier == 1.0
        orch.start_training()
        assert orch.state is TrainingState.RUNNING
        assert orch.speed_multiplier == 10.0
        assert orch.episode_count == 1
        assert orch.environment.episode_active

    def test_default_components(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        assert isinstance(orch.event_generator, RoundRobinEventGenerator)
        assert isinstance(orch.data_collector, PersonalityDataCollector)

    def test_no_collector_when_disabled(self, small_config):
        small_config.collect_personality_data = False
        orch = _orchestrator(small_config)
        orch.start_training()
        assert orch.data_collector is None

    def test_double_start_rejected(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        with pytest.raises(TrainingSetupError, match="already running"):
            orch.start_training()


class TestEventScheduling:
    def test_first_event_after_delay(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        orch.tick(0.5)
        assert orch.event_generator.events_triggered == 0
        orch.tick(0.5)
        assert orch.event_generator.events_triggered == 1

    def test_decisions_resolved_within_tick(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        orch.tick(1.0)
        for agent in orch.environment.agents:
            assert agent.pending_request is None
            assert agent.reaction is Reaction.ATTACK

    def test_reset_precedes_events_each_episode(self, small_config):
        small_config.max_episodes = 3
        gen = SpyGenerator(small_config.event_types, small_config.events_per_episode)
        orch = _orchestrator(small_config, event_generator=gen)
        orch.run(tick_interval=0.5)

        assert gen.calls.count("reset") == 3
        expected = ["reset", "event", "event", "event"] * 3
        assert gen.calls == expected
        assert gen.first_event_clean == [True, True, True]

    def test_scaled_ticks_keep_schedule(self, small_config):
        slow = _orchestrator(small_config)
        slow_history = slow.run(tick_interval=0.25)

        fast_config = TrainingConfig.from_dict(small_config.to_dict())
        fast_config.simulation_speed_multiplier = 100.0
        fast = _orchestrator(fast_config)
        fast_history = fast.run(tick_interval=0.02)

        assert [s.events_triggered for s in slow_history] == [3, 3]
        assert [s.events_triggered for s in fast_history] == [3, 3]
        assert [s.decisions for s in fast_history] == [s.decisions for s in slow_history]

    def test_zero_event_budget(self, small_config, caplog):
        small_config.events_per_episode = 0
        orch = _orchestrator(small_config)
        with caplog.at_level(logging.WARNING, logger="npcforge"):
            history = orch.run(tick_interval=0.5)
        assert all(s.decisions == 0 for s in history)
        assert "event limit reached" in caplog.text

    def test_negative_delta_rejected(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        with pytest.raises(ValueError):
            orch.tick(-0.1)


class TestEpisodeRollover:
    def test_runs_max_episodes(self, small_config):
        orch = _orchestrator(small_config)
        history = orch.run(tick_interval=0.5)
        assert len(history) == 2
        assert [s.episode for s in history] == [1, 2]
        assert orch.episode_count == 2

    def test_stops_exactly_once_and_restores_speed(self, small_config):
        small_config.simulation_speed_multiplier = 10.0
        orch = _orchestrator(small_config)
        orch.run(tick_interval=0.02)
        assert orch.state is TrainingState.STOPPED
        assert orch.runs_completed == 1
        assert orch.speed_multiplier == 1.0

        # Further ticks are ignored once stopped
        orch.tick(10.0)
        assert orch.runs_completed == 1
        assert len(orch.history) == 2

    def test_episode_boundary_is_barrier(self, small_config):
        orch = _orchestrator(small_config)
        orch.start_training()
        orch.tick(4.0)  # events at 1, 2, 3 then the episode ends
        assert orch.episode_count == 2
        assert orch.episode_time == 0.0
        assert orch.event_generator.events_triggered == 0
        assert all(a.reaction is Reaction.DO_NOTHING for a in orch.environment.agents)

    def test_restart_after_stop(self, small_config):
        orch = _orchestrator(small_config)
        orch.run(tick_interval=0.5)
        orch.start_training()
        assert orch.state is TrainingState.RUNNING
        assert orch.history == []
        orch.run(tick_interval=0.5)
        assert orch.runs_completed == 2

    def test_stop_training_early(self, small_config):
        small_config.max_episodes = 10
        orch = _orchestrator(small_config)
        orch.start_training()
        orch.tick(1.5)
        orch.stop_training()
        assert orch.state is TrainingState.STOPPED
        assert orch.speed_multiplier == 1.0
        assert len(orch.history) == 1
        assert not orch.environment.episode_active

    def test_max_ticks_guard(self, small_config):
        orch = _orchestrator(small_config)
        with pytest.raises(RuntimeError, match="did not finish"):
            orch.run(tick_interval=0.01, max_ticks=5)


class TestEpisodeSummary:
    def test_summary_counts(self, small_config):
        orch = _orchestrator(small_config)
        history = orch.run(tick_interval=0.5)
        summary = history[0]
        assert isinstance(summary, EpisodeSummary)
        assert summary.events_triggered == 3
        assert summary.decisions == 9
        assert summary.reaction_counts["attack"] == 9
        assert summary.event_counts == {"player_spotted": 3, "attacked": 3, "steal": 3}
        assert summary.total_reward == pytest.approx(sum(summary.agent_rewards.values()))
        assert summary.mean_reward == pytest.approx(summary.total_reward / 9)

    def test_summary_to_dict(self, small_config):
        orch = _orchestrator(small_config)
        d = orch.run(tick_interval=0.5)[0].to_dict()
        assert d["episode"] == 1
        assert set(d["reaction_counts"]) == {"do_nothing", "flee", "greet", "attack"}


class TestSnapshots:
    def test_snapshot_taken_at_first_episode_start(self, small_config):
        collector = PersonalityDataCollector(log_frequency=1)
        orch = _orchestrator(small_config, data_collector=collector)
        orch.start_training()
        assert collector.snapshots_taken == 1
        assert {r.episode for r in collector.records} == {1}
        assert not any(r.final for r in collector.records)

    def test_single_episode_start_and_final(self, small_config):
        small_config.max_episodes = 1
        collector = PersonalityDataCollector(log_frequency=1)
        orch = _orchestrator(small_config, data_collector=collector)
        orch.run(tick_interval=0.5)
        assert collector.snapshots_taken == 2
        assert [r.final for r in collector.records] == [False] * 3 + [True] * 3

    def test_snapshot_cadence(self, small_config):
        small_config.max_episodes = 5
        collector = PersonalityDataCollector(log_frequency=2)
        orch = _orchestrator(small_config, data_collector=collector)
        orch.run(tick_interval=0.5)

        episodes = sorted({r.episode for r in collector.records})
        assert episodes == [2, 4, 5]
        assert collector.snapshots_taken == 3
        finals = [r for r in collector.records if r.final]
        assert len(finals) == 3
        assert all(r.episode == 5 for r in finals)

    def test_start_and_final_snapshots_of_last_episode(self, small_config):
        small_config.max_episodes = 4
        collector = PersonalityDataCollector(log_frequency=2)
        orch = _orchestrator(small_config, data_collector=collector)
        orch.run(tick_interval=0.5)
        assert collector.snapshots_taken == 3
        last = [r for r in collector.records if r.episode == 4]
        assert [r.final for r in last] == [False] * 3 + [True] * 3

    def test_start_snapshot_sees_fresh_episode_state(self, small_config):
        collector = PersonalityDataCollector(log_frequency=1)
        orch = _orchestrator(small_config, data_collector=collector)
        orch.run(tick_interval=0.5)

        starts = [r for r in collector.records if not r.final]
        finals = [r for r in collector.records if r.final]
        assert all(r.last_reaction == "do_nothing" for r in starts)
        assert all(r.last_reaction == "attack" for r in finals)

        # Traits are resampled before the start snapshot and stay fixed until the end
        start_traits = {r.agent_id: r.traits for r in starts if r.episode == 2}
        assert {r.agent_id: r.traits for r in finals} == start_traits

    def test_injected_collector(self, small_config):
        collector = PersonalityDataCollector(log_frequency=1)
        orch = _orchestrator(small_config)
        orch.set_data_collector(collector)
        orch.run(tick_interval=0.5)
        assert orch.data_collector is collector
        assert collector.snapshots_taken == 3
