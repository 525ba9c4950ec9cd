"""Tests for training presets."""

import pytest

from npcforge.core.events import TriggerEventType
from npcforge.experiment.presets import PRESETS, get_preset, list_presets
from npcforge.experiment.runner import TrainingRunner


class TestPresets:
    def test_list_presets(self):
        names = list_presets()
        assert len(names) == 5
        assert "baseline" in names
        assert "quick_smoke" in names

    def test_names_match_experiment_name(self):
        for name in list_presets():
            assert get_preset(name).experiment_name == name

    @pytest.mark.parametrize("name", list(PRESETS))
    def test_all_presets_validate(self, name):
        get_preset(name).validate()

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="Unknown preset"):
            get_preset("nonexistent")

    def test_fresh_instance_each_call(self):
        a = get_preset("baseline")
        b = get_preset("baseline")
        a.num_agents = 99
        assert b.num_agents == 10

    def test_hostile_world_events(self):
        cfg = get_preset("hostile_world")
        assert cfg.event_types == [TriggerEventType.ATTACKED, TriggerEventType.STEAL]

    def test_quick_smoke_runs(self):
        cfg = get_preset("quick_smoke")
        cfg.random_seed = 3
        result = TrainingRunner().run_training(cfg)
        assert result.episodes_completed == 5
        assert result.total_decisions == 5 * 3 * 4
