"""Page reference generator: synthetic instruction address streams.

Real programs don't touch memory uniformly.  They run a few
instructions in sequence, jump back into a loop, run on, jump forward
past a branch.  This **locality of reference** is what makes demand
paging work at all.

The generator reproduces that shape with a fixed six-step cycle:

    1. current address
    2. the next address                 (sequential)
    3. a random address *below* current (backward jump)
    4. the next address                 (sequential)
    5. a random address *above* current (forward jump)
    6. the next address                 (sequential)

Half of the references are sequential, a quarter are backward jumps
and a quarter forward jumps.  Only the jump targets are random; pass a
seeded ``random.Random`` to get a repeatable stream.
"""

import random

DEFAULT_SEQUENCE_LENGTH = 320


def generate_addresses(
    length: int = DEFAULT_SEQUENCE_LENGTH,
    *,
    rng: random.Random | None = None,
) -> list[int]:
    """Generate ``length`` instruction addresses over ``[0, length)``.

    Args:
        length: Number of addresses to emit; also the address space size.
        rng: Random source for the start address and jump targets.

    Returns:
        Exactly ``length`` addresses.

    Raises:
        ValueError: If length is not positive.

    """
    if length <= 0:
        msg = f"Sequence length must be positive, got {length}"
        raise ValueError(msg)
    rng = rng if rng is not None else random.Random()  # noqa: S311
    last = length - 1
    sequence: list[int] = []

    def step_forward(address: int) -> int:
        return address + 1 if address < last else 0

    current = rng.randrange(length)
    while len(sequence) < length:
        sequence.append(current)

        current = step_forward(current)
        sequence.append(current)

        if current > 0:
            current = rng.randrange(current)
        sequence.append(current)

        current = step_forward(current)
        sequence.append(current)

        low = current + 2
        current = rng.randint(low, last) if low <= last else last
        sequence.append(current)

        current = step_forward(current)
        sequence.append(current)

    return sequence[:length]
