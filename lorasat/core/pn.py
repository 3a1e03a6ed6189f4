"""
Gold-code-like PN sequence from two 5-stage LFSRs.

Each chip is the XOR of the last stage of both registers, read *before* the
registers shift. After reading, each register shifts right by one position
and the feedback bit (XOR of its tap positions) is inserted at the front.
Tap positions are 1-indexed, position 1 being the front of the register.
"""
from typing import Dict, Sequence, Tuple

import numpy as np

from lorasat.errors import ConfigurationError, InvalidInputError

REGISTER_LENGTH = 5
REGISTER1_TAPS = (1, 3)
REGISTER2_TAPS = (1, 2, 3, 5)
INITIAL_STATE = (1, 0, 0, 0, 0)

LFSRState = Tuple[int, ...]


def lfsr_step(state: LFSRState, taps: Sequence[int]) -> Tuple[int, LFSRState]:
    """
    Advance one register by one chip.
    Returns (output bit, next state). The output is the last stage of `state`.
    """
    out = state[-1]
    feedback = 0
    for tap in taps:
        feedback ^= state[tap - 1]
    return out, (feedback,) + state[:-1]


def _check_register(state, taps, name):
    state = tuple(int(b) for b in state)
    if len(state) != REGISTER_LENGTH:
        raise ConfigurationError(f"{name}: register length must be {REGISTER_LENGTH}, got {len(state)}")
    if any(b not in (0, 1) for b in state):
        raise ConfigurationError(f"{name}: register state must be binary, got {state}")
    taps = tuple(int(t) for t in taps)
    if not taps or any(t < 1 or t > REGISTER_LENGTH for t in taps):
        raise ConfigurationError(f"{name}: taps must lie in 1..{REGISTER_LENGTH}, got {taps}")
    return state, taps


class GoldSequenceGenerator:
    """
    Deterministic PN chip source.

    `generate(n)` runs the two registers from their initial states.
    `pn_bit(i)` / `pn_slice(start, stop)` give the same chips without
    generating the prefix: the joint register state lives in a finite space,
    so the chip stream is a transient followed by a fixed cycle, which is
    found once at construction.
    """

    def __init__(self,
                 state1: Sequence[int] = INITIAL_STATE,
                 state2: Sequence[int] = INITIAL_STATE,
                 taps1: Sequence[int] = REGISTER1_TAPS,
                 taps2: Sequence[int] = REGISTER2_TAPS):
        self.state1, self.taps1 = _check_register(state1, taps1, "register 1")
        self.state2, self.taps2 = _check_register(state2, taps2, "register 2")
        self._find_cycle()

    def _find_cycle(self):
        seen: Dict[Tuple[LFSRState, LFSRState], int] = {}
        chips = []
        s1, s2 = self.state1, self.state2
        while (s1, s2) not in seen:
            seen[(s1, s2)] = len(chips)
            b1, s1 = lfsr_step(s1, self.taps1)
            b2, s2 = lfsr_step(s2, self.taps2)
            chips.append(b1 ^ b2)
        self.transient = seen[(s1, s2)]
        self.period = len(chips) - self.transient
        self._table = np.array(chips, dtype=np.uint8)

    def generate(self, length: int) -> np.ndarray:
        """Run both registers `length` steps and return the chips as uint8 {0,1}."""
        if length < 0:
            raise InvalidInputError(f"Sequence length must be non-negative, got {length}")
        out = np.zeros(length, dtype=np.uint8)
        s1, s2 = self.state1, self.state2
        for i in range(length):
            b1, s1 = lfsr_step(s1, self.taps1)
            b2, s2 = lfsr_step(s2, self.taps2)
            out[i] = b1 ^ b2
        return out

    def _fold(self, index):
        index = np.asarray(index, dtype=np.int64)
        return np.where(index < self.transient, index,
                        self.transient + (index - self.transient) % self.period)

    def pn_bit(self, index: int) -> int:
        """Chip `index` of the sequence, as if the registers had been stepped `index` times."""
        if index < 0:
            raise InvalidInputError(f"Chip index must be non-negative, got {index}")
        return int(self._table[self._fold(index)])

    def pn_slice(self, start: int, stop: int) -> np.ndarray:
        """Chips [start, stop) of the sequence; equal to generate(stop)[start:stop]."""
        if start < 0 or stop < start:
            raise InvalidInputError(f"Invalid chip range [{start}, {stop})")
        return self._table[self._fold(np.arange(start, stop))]
