"""Tests for topology strategies and synapse generation."""

import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import brain_random
from brain_config import NetworkConfig
from network_shaper import SHAPES, get_shaper, uniform_range
from neural_network import NeuralNetwork, generate_synapses


@pytest.fixture(autouse=True)
def _seed():
    brain_random.seed(314)


def draws(shaper, size, index, cpn=4, n=300):
    return [shaper(size, index, cpn, k % cpn) for k in range(n)]


class TestStrategies:
    @pytest.mark.parametrize("name", sorted(SHAPES))
    def test_tiny_networks_yield_nothing(self, name):
        shaper = SHAPES[name]
        assert shaper(0, 0, 4, 0) is None
        assert shaper(1, 0, 4, 0) is None

    @pytest.mark.parametrize("name", sorted(SHAPES))
    def test_targets_in_range_and_never_self(self, name):
        shaper = SHAPES[name]
        for index in (0, 17, 49):
            for target in draws(shaper, 50, index):
                if target is not None:
                    assert 0 <= target < 50
                    assert target != index

    def test_forward_only_ahead(self):
        targets = [t for t in draws(SHAPES["forward"], 100, 40) if t is not None]
        assert targets
        assert all(41 <= t <= 50 for t in targets)

    def test_forward_drops_past_end(self):
        assert all(t is None for t in draws(SHAPES["forward"], 100, 99))

    def test_ring_wraps(self):
        targets = draws(SHAPES["ring"], 100, 99)
        assert None not in targets
        assert all(0 <= t <= 4 for t in targets)

    def test_layered_connects_next_layer(self):
        layered = SHAPES["layered"]
        assert [layered(12, 1, 4, k) for k in range(4)] == [4, 5, 6, 7]
        assert [layered(12, 5, 4, k) for k in range(4)] == [8, 9, 10, 11]
        assert [layered(12, 9, 4, k) for k in range(4)] == [None] * 4

    def test_tube_stays_near(self):
        targets = [t for t in draws(SHAPES["tube"], 100, 50) if t is not None]
        assert targets
        assert all(30 <= t <= 70 for t in targets)
        assert any(t < 50 for t in targets) and any(t > 50 for t in targets)

    def test_snake_is_tighter_than_tube(self):
        targets = [t for t in draws(SHAPES["snake"], 100, 50) if t is not None]
        assert targets
        assert all(45 <= t <= 55 for t in targets)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_shaper("donut")

    def test_uniform_range(self):
        shaper = uniform_range(10, 14)
        assert set(draws(shaper, 20, 0)) <= set(range(10, 15))
        assert uniform_range(5, 4)(20, 0, 4, 0) is None

    def test_uniform_range_excluding_self(self):
        shaper = uniform_range(0, 3, exclude_self=True)
        assert 2 not in draws(shaper, 4, 2)


class TestGeneration:
    def test_candidate_count_averages_cpn(self):
        cfg = NetworkConfig(connections_per_neuron=4)
        always = lambda size, index, cpn, ordinal: 0
        counts = [len(generate_synapses(10, 1, cfg, always)) for _ in range(500)]
        assert min(counts) >= 1
        assert max(counts) <= 7
        assert 3.5 <= sum(counts) / len(counts) <= 4.5

    def test_exact_count(self):
        cfg = NetworkConfig(connections_per_neuron=3)
        always = lambda size, index, cpn, ordinal: 0
        assert len(generate_synapses(10, 1, cfg, always, exact_count=True)) == 3

    def test_unplaceable_candidates_dropped(self):
        cfg = NetworkConfig()
        assert generate_synapses(10, 1, cfg, lambda *args: None) == []

    def test_initial_weights(self):
        net = NeuralNetwork(200, {"shape": "uniform"})
        weights = [s.weight for s in net.synapses]
        assert weights
        assert all(-0.25 <= w < 0.75 for w in weights)
        assert all(s.long_term_weight == s.weight for s in net.synapses)

    def test_layered_network_is_fully_connected_between_layers(self):
        net = NeuralNetwork(12, {"shape": "layered", "connections_per_neuron": 4})
        for neuron in net.neurons[:8]:
            layer = neuron.index // 4
            assert sorted(s.target for s in neuron.synapses) == list(
                range(4 * (layer + 1), 4 * (layer + 2))
            )
        assert all(n.synapses == [] for n in net.neurons[8:])

    def test_layered_function_draws_exact_count(self):
        layered = SHAPES["layered"]
        net = NeuralNetwork(12, {"connections_per_neuron": 4}, shaper=layered)
        assert net.config.shape == "tube"
        assert [len(n.synapses) for n in net.neurons[:8]] == [4] * 8
        assert all(n.synapses == [] for n in net.neurons[8:])

    def test_other_shapers_draw_variable_count(self):
        always = lambda size, index, cpn, ordinal: 0 if index else 1
        net = NeuralNetwork(300, {"shape": "layered", "connections_per_neuron": 4}, shaper=always)
        assert len({len(n.synapses) for n in net.neurons}) > 1

    def test_custom_shaper(self):
        chain = lambda size, index, cpn, ordinal: index + 1 if index + 1 < size else None
        net = NeuralNetwork(6, {"connections_per_neuron": 1}, shaper=chain)
        assert [[s.target for s in n.synapses] for n in net.neurons] == [[1], [2], [3], [4], [5], []]

    def test_seeded_construction_reproducible(self):
        brain_random.seed(1)
        first = NeuralNetwork(50).export()
        brain_random.seed(1)
        second = NeuralNetwork(50).export()
        assert first == second
