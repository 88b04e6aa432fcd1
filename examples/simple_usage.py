"""Simple usage example for botbrain.

Builds a small network, drives an input site, watches an output site, then
reinforces whatever just happened and saves a checkpoint.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import brain_random
from brain_monitoring import health_context
from neural_network import NeuralNetwork


def main():
    brain_random.seed(7)

    # 60 neurons linked to near neighbours
    net = NeuralNetwork(60, {"shape": "tube", "signal_speed": 20})

    light = net.input("light", 4)
    wheel = net.output("wheel", 2)
    wheel.register_event_handler("data", lambda value: print(f"wheel data: {value:.3f}"))
    wheel.register_event_handler(
        "change", lambda value, previous, delta: print(f"wheel change: {delta:+.3f}")
    )

    print("=== Initial State ===")
    print(health_context(net))

    # Drive the input for two simulated seconds
    print("\n=== Stimulating (2s) ===")
    fired = []
    net.register_event_handler("fire", lambda neuron_id, **_: fired.append(neuron_id))
    for _ in range(10):
        light(1.0)
        net.advance(200)
    print(f"{len(fired)} fire events, {len(set(fired))} distinct neurons")

    # Reinforce the pathways that just carried signal
    print("\n=== Learning ===")
    before = net.get_telemetry().mean_weight
    net.learn()
    result = net.last_learning
    print(f"decayed={result.decayed:.4f} potentiated={result.potentiated:.4f}")
    print(f"mean weight {before:.4f} -> {net.get_telemetry().mean_weight:.4f}")

    # Graft a second network onto the end
    print("\n=== Join ===")
    other = NeuralNetwork(40, {"shape": "ring"})
    net.join(other, at=0.9, overlap=0.1)
    print(health_context(net))

    # Checkpoint
    print("\n=== Checkpoint ===")
    net.stop()
    net.checkpoint("/tmp/botbrain_example.json")
    print("Saved to /tmp/botbrain_example.json")

    restored = NeuralNetwork.restore("/tmp/botbrain_example.json")
    print(f"Restored network: {restored.size} neurons, {len(restored.synapses)} synapses")


if __name__ == "__main__":
    main()
