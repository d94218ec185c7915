import random
from collections import Counter

import pytest

from onion_relay.circuit import Circuit, CircuitBuilder
from onion_relay.directory import RelayDescriptor
from onion_relay.errors import InsufficientRelaysError


def relays(count):
    return [RelayDescriptor(i, b"pub%d" % i) for i in range(count)]


def test_builds_three_distinct_relays(rng):
    builder = CircuitBuilder(rng=rng)
    for _ in range(200):
        circuit = builder.build(relays(5))
        assert len(circuit) == 3
        assert len(set(circuit.ids)) == 3


def test_exactly_three_relays_uses_all_of_them(rng):
    circuit = CircuitBuilder(rng=rng).build(relays(3))
    assert sorted(circuit.ids) == [0, 1, 2]


@pytest.mark.parametrize("count", [0, 1, 2])
def test_too_few_relays(count):
    with pytest.raises(InsufficientRelaysError) as excinfo:
        CircuitBuilder().build(relays(count))
    assert excinfo.value.available == count
    assert excinfo.value.required == 3


def test_seeded_rng_is_deterministic():
    first = CircuitBuilder(rng=random.Random(7)).build(relays(10))
    second = CircuitBuilder(rng=random.Random(7)).build(relays(10))
    assert first.ids == second.ids


def test_every_relay_gets_picked_in_every_position(rng):
    builder = CircuitBuilder(rng=rng)
    positions = [Counter() for _ in range(3)]
    for _ in range(1000):
        for index, relay_id in enumerate(builder.build(relays(5)).ids):
            positions[index][relay_id] += 1
    for counter in positions:
        assert set(counter) == set(range(5))
        # 200 expected per relay and position
        assert min(counter.values()) > 120


def test_circuit_rejects_duplicates():
    relay = RelayDescriptor(1, b"pub")
    with pytest.raises(ValueError):
        Circuit((relay, relay, RelayDescriptor(2, b"pub2")))


def test_entry_is_first_relay(rng):
    circuit = CircuitBuilder(rng=rng).build(relays(6))
    assert circuit.entry.relay_id == circuit.ids[0]
