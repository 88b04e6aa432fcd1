"""
Learning rules: unsupervised reinforcement of recently active pathways.

A rule is a strategy object applied to the whole network on demand
(``NeuralNetwork.learn``).  The default ``RecencyLearningRule`` runs three
passes over every synapse:

    1. Decay: weight relaxes toward the midpoint of its long-term weight and
       the network's stable level; long-term weight follows slowly.
    2. Potentiation: synapses that fired within the learning period are
       nudged by ``rate * learning_rate``, scaled linearly by recency, in the
       direction of their own sign.
    3. Conservation: the net change (potentiation − decay) is spread back
       across synapses so reinforcement does not inflate total weight.
       With a positive rate it is spread over every synapse; otherwise over
       a random half of the synapses that did *not* fire recently, which
       reactivates unused capacity.

``last_fired`` stamps come from interleaved cascades, so recency is
best-effort and the rule never depends on exact causal order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

import brain_random
from brain_utils import clamp, clamp_weight

if TYPE_CHECKING:
    from neural_network import NeuralNetwork, Synapse


@dataclass
class LearningResult:
    """Summary of one learning pass.

    Attributes:
        rate: Clamped rate the pass ran with.
        time: Scheduler clock at the pass (ms).
        decayed: Total weight removed by decay (negative if decay added).
        potentiated: Total weight added by potentiation.
        corrected: Total weight applied by the conservation correction.
    """

    rate: float = 0.0
    time: float = 0.0
    decayed: float = 0.0
    potentiated: float = 0.0
    corrected: float = 0.0


class LearningRule:
    """Base class for pluggable learning rules.

    Subclass and override ``apply``.
    """

    def apply(self, network: "NeuralNetwork", rate: float) -> LearningResult:
        raise NotImplementedError


class RecencyLearningRule(LearningRule):
    """Decay + recency-weighted potentiation + conservation correction.

    Args:
        unlearn_sample: Probability that an idle synapse takes part in the
            correction of a negative-rate pass.
    """

    def __init__(self, unlearn_sample: float = 0.5):
        self.unlearn_sample = unlearn_sample

    def apply(self, network: "NeuralNetwork", rate: float) -> LearningResult:
        rate = clamp(float(rate), -1.0, 1.0)
        now = network.scheduler.now
        result = LearningResult(rate=rate, time=now)
        synapses = network.synapses
        if not synapses:
            return result

        period = network.learning_period
        result.decayed = self.decay(network, synapses, rate)
        result.potentiated = self.potentiate(network, synapses, rate, now, period)

        diff = result.potentiated - result.decayed
        if rate > 0:
            targets = synapses
        else:
            targets = [
                s
                for s in synapses
                if not self.fired_recently(s, now, period)
                and brain_random.chance(self.unlearn_sample)
            ]
        result.corrected = self.redistribute(targets, -diff)
        return result

    @staticmethod
    def fired_recently(synapse: "Synapse", now: float, period: float) -> bool:
        if synapse.last_fired is None or period <= 0:
            return False
        return 0 <= now - synapse.last_fired <= period

    def decay(self, network: "NeuralNetwork", synapses: List["Synapse"], rate: float) -> float:
        """Relax weights toward their anchors.

        Returns:
            Total weight removed (sum of old − new).
        """
        cfg = network.config
        stable = cfg.stable_weight
        tendency = (network.strength + cfg.learning_rate) / 2.0
        step = abs(rate) * tendency
        removed = 0.0
        for syn in synapses:
            old = syn.weight
            anchor = (syn.long_term_weight + stable) / 2.0
            syn.weight = clamp_weight(old + (anchor - old) * step)
            syn.long_term_weight = clamp_weight(
                syn.long_term_weight + (syn.weight - syn.long_term_weight) * cfg.retention_rate
            )
            removed += old - syn.weight
        return removed

    def potentiate(
        self,
        network: "NeuralNetwork",
        synapses: List["Synapse"],
        rate: float,
        now: float,
        period: float,
    ) -> float:
        """Nudge recently fired synapses in the direction of their sign.

        Returns:
            Total weight actually applied after clamping.
        """
        if period <= 0:
            return 0.0
        scale = rate * network.config.learning_rate
        applied = 0.0
        for syn in synapses:
            if not self.fired_recently(syn, now, period):
                continue
            recency = 1.0 - (now - syn.last_fired) / period
            sign = -1.0 if syn.weight < 0 else 1.0
            old = syn.weight
            syn.weight = clamp_weight(old + sign * recency * scale)
            applied += syn.weight - old
        return applied

    @staticmethod
    def redistribute(synapses: List["Synapse"], amount: float) -> float:
        """Spread ``amount`` evenly; clamped remainders roll onto later synapses.

        Returns:
            Total weight applied.
        """
        remaining = amount
        count = len(synapses)
        for i, syn in enumerate(synapses):
            share = remaining / (count - i)
            old = syn.weight
            syn.weight = clamp_weight(old + share)
            remaining -= syn.weight - old
        return amount - remaining
