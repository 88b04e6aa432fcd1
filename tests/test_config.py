"""Tests for brain_config — defaults, layering, validation, record form."""

import json
import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from brain_config import NetworkConfig, load_config


class TestDefaults:
    def test_defaults(self):
        cfg = load_config()
        assert cfg.shape == "tube"
        assert cfg.connections_per_neuron == 4
        assert cfg.signal_speed == 10.0
        assert cfg.signal_fire_threshold == 0.3
        assert cfg.learning_period == 60000
        assert cfg.learning_rate == 0.15
        assert cfg.retention_rate == 0.05
        assert cfg.recovery_multiplier == 10.0

    def test_derived_timings(self):
        cfg = NetworkConfig(signal_speed=20)
        assert cfg.conduction_delay == pytest.approx(50.0)
        assert cfg.refractory_delay == pytest.approx(500.0)

    def test_stable_weight(self):
        assert NetworkConfig().stable_weight == pytest.approx(0.075)


class TestLayering:
    def test_overrides(self):
        cfg = load_config({"shape": "ring", "signal_speed": 25})
        assert cfg.shape == "ring"
        assert cfg.signal_speed == 25
        assert cfg.connections_per_neuron == 4

    def test_file_then_overrides(self, tmp_path):
        path = tmp_path / "net.json"
        path.write_text(json.dumps({"shape": "snake", "learning_rate": 0.3}))
        cfg = load_config({"learning_rate": 0.4}, config_path=str(path))
        assert cfg.shape == "snake"
        assert cfg.learning_rate == 0.4

    def test_missing_file_ignored(self, tmp_path):
        cfg = load_config(config_path=str(tmp_path / "absent.json"))
        assert cfg == NetworkConfig()

    def test_unreadable_file_warns(self, tmp_path, caplog):
        path = tmp_path / "net.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="botbrain.config"):
            cfg = load_config(config_path=str(path))
        assert cfg == NetworkConfig()
        assert "Failed to load" in caplog.text

    def test_unknown_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="botbrain.config"):
            cfg = load_config({"flux_capacitor": 1})
        assert not hasattr(cfg, "flux_capacitor")
        assert "flux_capacitor" in caplog.text

    def test_merged_copy(self):
        base = NetworkConfig()
        ring = base.merged({"shape": "ring"})
        assert ring.shape == "ring"
        assert base.shape == "tube"


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"shape": "donut"},
            {"connections_per_neuron": 0},
            {"signal_speed": 0},
            {"signal_speed": -5},
            {"learning_period": -1},
            {"recovery_multiplier": 0.5},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            load_config(overrides)

    def test_network_rejects_bad_config(self):
        from neural_network import NeuralNetwork

        with pytest.raises(ValueError):
            NeuralNetwork(5, {"shape": "donut"})


class TestRecordForm:
    def test_camel_case_keys(self):
        record = NetworkConfig().to_record()
        assert set(record) == {
            "shape",
            "connectionsPerNeuron",
            "signalSpeed",
            "signalFireThreshold",
            "learningPeriod",
            "learningRate",
            "retentionRate",
            "recoveryMultiplier",
        }

    def test_round_trip(self):
        cfg = NetworkConfig(shape="forward", connections_per_neuron=6, learning_rate=0.25)
        assert NetworkConfig.from_record(cfg.to_record()) == cfg

    def test_partial_record_keeps_defaults(self):
        cfg = NetworkConfig.from_record({"signalSpeed": 40})
        assert cfg.signal_speed == 40
        assert cfg.shape == "tube"

    def test_integer_fields_cast(self):
        cfg = NetworkConfig.from_record({"connectionsPerNeuron": 3.0, "learningPeriod": 1500.0})
        assert cfg.connections_per_neuron == 3
        assert isinstance(cfg.connections_per_neuron, int)
        assert isinstance(cfg.learning_period, int)
