"""Mesh demo: three networks of different shapes stitched into one.

Two sensors feed opposite ends; two wheels read out.  Runs in real time for a
few seconds, then rewards the run.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import brain_random
from neural_network import NeuralNetwork


def main():
    left = NeuralNetwork(120, {"shape": "forward", "signal_speed": 20})
    middle = NeuralNetwork(140, {"shape": "ring"})
    right = NeuralNetwork(160, {"shape": "forward"})

    left.output("Wheel (L)", 2)
    right.output("Wheel (R)", 6)
    right.input("Photoresistor (R)")
    left.input("Photoresistor (L)", 4)

    mesh = middle.join(left, at=0.5)
    mesh = right.join(mesh, at=0.76)
    mesh.join(mesh)

    wheel_l = mesh.output("Wheel (L)")
    wheel_r = mesh.output("Wheel (R)")
    wheel_l.register_event_handler("data", lambda value: print(f"wheel L {value:.2f}"))
    wheel_r.register_event_handler("data", lambda value: print(f"wheel R {value:.2f}"))

    # Sites of the joined networks were copied onto the mesh under shifted ids
    print("inputs:", {k: v.neuron_ids for k, v in mesh.inputs.items()})
    print("outputs:", {k: v.neuron_ids for k, v in mesh.outputs.items()})

    eye_l = mesh.input("Photoresistor (L)")
    eye_r = mesh.input("Photoresistor (R)")
    for _ in range(20):
        eye_l(brain_random.uniform())
        eye_r(brain_random.uniform())
        mesh.scheduler.run_realtime(0.2)

    mesh.learn()
    print(f"strength after reward: {mesh.strength:.3f}")
    mesh.stop()


if __name__ == "__main__":
    main()
