# onion_relay/circuit.py
import random
from dataclasses import dataclass

from onion_relay import config
from onion_relay.errors import InsufficientRelaysError


@dataclass(frozen=True)
class Circuit:
    relays: tuple

    def __post_init__(self):
        ids = [relay.relay_id for relay in self.relays]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Circuit relays must be distinct, got {ids}.")

    @property
    def ids(self):
        return [relay.relay_id for relay in self.relays]

    @property
    def entry(self):
        return self.relays[0]

    def __iter__(self):
        return iter(self.relays)

    def __len__(self):
        return len(self.relays)


class CircuitBuilder:
    """Uniformly samples distinct relays, entry first."""

    def __init__(self, rng=None, length=config.CIRCUIT_LENGTH):
        self.rng = rng or random.Random()
        self.length = length

    def build(self, relays):
        relays = list(relays)
        if len(relays) < self.length:
            raise InsufficientRelaysError(len(relays), self.length)
        return Circuit(tuple(self.rng.sample(relays, self.length)))
