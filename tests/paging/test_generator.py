"""Tests for the page reference generator.

The generator emits a locality-shaped address stream: a six-step
cycle of current, sequential, backward jump, sequential, forward jump,
sequential.  Only the jump targets (and the start) are random.
"""

import random

import pytest

from memsim.paging.generator import DEFAULT_SEQUENCE_LENGTH, generate_addresses

LENGTH = DEFAULT_SEQUENCE_LENGTH
CYCLE = 6


def _cycles(sequence: list[int]) -> list[list[int]]:
    """Split a sequence into its complete six-address cycles."""
    complete = len(sequence) - len(sequence) % CYCLE
    return [sequence[i : i + CYCLE] for i in range(0, complete, CYCLE)]


class TestShape:
    """Verify length and range of the stream."""

    def test_default_length(self) -> None:
        """The reference stream has 320 addresses."""
        expected_length = 320
        assert len(generate_addresses(rng=random.Random(1))) == expected_length

    @pytest.mark.parametrize("length", [1, 5, 7, 100])
    def test_exact_length(self, length: int) -> None:
        """Overshoot is truncated to exactly the requested length."""
        assert len(generate_addresses(length, rng=random.Random(3))) == length

    def test_addresses_in_range(self) -> None:
        """Every address lies in ``[0, length)``."""
        for seed in range(20):
            sequence = generate_addresses(LENGTH, rng=random.Random(seed))
            assert all(0 <= address < LENGTH for address in sequence)

    @pytest.mark.parametrize("length", [0, -10])
    def test_non_positive_length_raises(self, length: int) -> None:
        """The stream needs a positive length."""
        with pytest.raises(ValueError, match="positive"):
            generate_addresses(length)


class TestDeterminism:
    """Verify the injected random source controls the stream."""

    def test_same_seed_same_stream(self) -> None:
        """Two generators seeded alike produce identical streams."""
        first = generate_addresses(rng=random.Random(42))
        second = generate_addresses(rng=random.Random(42))
        assert first == second

    def test_different_seeds_differ(self) -> None:
        """Different seeds give different streams."""
        assert generate_addresses(rng=random.Random(1)) != generate_addresses(
            rng=random.Random(2)
        )


class TestLocalityCycle:
    """Verify the sequential / backward / forward pattern."""

    @pytest.mark.parametrize("seed", range(10))
    def test_cycle_structure(self, seed: int) -> None:
        """Each cycle steps, jumps back, steps, jumps forward, steps."""
        last = LENGTH - 1
        for start, seq1, back, seq2, forward, seq3 in _cycles(
            generate_addresses(LENGTH, rng=random.Random(seed))
        ):
            assert seq1 == (start + 1) % LENGTH
            if seq1 > 0:
                assert back < seq1
            else:
                assert back == 0
            assert seq2 == (back + 1) % LENGTH
            if seq2 + 2 <= last:
                assert forward >= seq2 + 2
            else:
                assert forward == last
            assert seq3 == (forward + 1) % LENGTH

    def test_next_cycle_starts_where_last_ended(self) -> None:
        """A cycle's first address repeats the previous cycle's last."""
        cycles = _cycles(generate_addresses(LENGTH, rng=random.Random(5)))
        for previous, following in zip(cycles, cycles[1:], strict=False):
            assert following[0] == previous[-1]

    def test_half_the_steps_are_sequential(self) -> None:
        """Three of the six transitions per cycle are sequential steps."""
        sequence = generate_addresses(LENGTH, rng=random.Random(9))
        sequential_positions = {1, 3, 5}
        for index, address in enumerate(sequence[1:], start=1):
            if index % CYCLE in sequential_positions:
                assert address == (sequence[index - 1] + 1) % LENGTH
