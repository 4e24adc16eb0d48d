"""MD5 compression function (RFC 1321), table driven.

Each of the 64 steps is described by one entry in four small tables: which
working registers play the roles a, b, c, d (REGISTERS), which message word
is mixed in (MESSAGE_INDEX), the left-rotation amount (SHIFT) and the
additive constant (T). The compression loop is the same for every step; only
the boolean function changes per group of 16 steps. Running fewer than four
groups (num_rounds < 4) gives the reduced-round variants used by the CNF
model in circuit.py.
"""
import math
import struct

from bitops import MASK32, choose, parity, rotl
from blocks import Block

IV = (0x67452301, 0xefcdab89, 0x98badcfe, 0x10325476)

# floor(2^32 * |sin(i + 1)|)
T = tuple(int(4294967296 * abs(math.sin(i + 1))) & MASK32 for i in range(64))

SHIFT = (
    7, 12, 17, 22, 7, 12, 17, 22, 7, 12, 17, 22, 7, 12, 17, 22,
    5, 9, 14, 20, 5, 9, 14, 20, 5, 9, 14, 20, 5, 9, 14, 20,
    4, 11, 16, 23, 4, 11, 16, 23, 4, 11, 16, 23, 4, 11, 16, 23,
    6, 10, 15, 21, 6, 10, 15, 21, 6, 10, 15, 21, 6, 10, 15, 21,
)

MESSAGE_INDEX = (
    0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15,
    1, 6, 11, 0, 5, 10, 15, 4, 9, 14, 3, 8, 13, 2, 7, 12,
    5, 8, 11, 14, 1, 4, 7, 10, 13, 0, 3, 6, 9, 12, 15, 2,
    0, 7, 14, 5, 12, 3, 10, 1, 8, 15, 6, 13, 4, 11, 2, 9,
)

# Step i updates register (-i) mod 4: a, d, c, b, a, d, ...
REGISTERS = tuple(tuple((k - i) % 4 for k in range(4)) for i in range(64))


def F(b, c, d):
    return choose(b, c, d)


def G(b, c, d):
    return choose(d, b, c)


def H(b, c, d):
    return parity(b, c, d)


def I(b, c, d):
    return (c ^ (b | ~d)) & MASK32


ROUND_FUNCTIONS = (F, G, H, I)


def compress(state, block, num_rounds=4):
    """Mix one 64-byte block into state (a list of 4 words), in place.

    The message words are read little-endian, per MD5's specification.
    Returns state.
    """
    assert num_rounds in [1, 2, 3, 4]
    if not isinstance(block, Block):
        block = Block(block)
    x = block.words("little")
    r = list(state)

    for i in range(16 * num_rounds):
        a, b, c, d = REGISTERS[i]
        f = ROUND_FUNCTIONS[i // 16](r[b], r[c], r[d])
        comb = r[a] + f + x[MESSAGE_INDEX[i]] + T[i]
        r[a] = (r[b] + rotl(comb, SHIFT[i])) & MASK32

    for k in range(4):
        state[k] = (state[k] + r[k]) & MASK32
    return state


class MD5:
    """Running MD5 state.

    Each instance starts from the initial vector and is only changed by
    compress(); create a new instance for every message.
    """

    name = "md5"
    digest_size = 16
    block_size = Block.SIZE
    byteorder = "little"

    def __init__(self, num_rounds=4):
        assert num_rounds in [1, 2, 3, 4]
        self.num_rounds = num_rounds
        self.state = list(IV)

    def compress(self, block):
        """Mix one block into the running state; returns the state list."""
        return compress(self.state, block, self.num_rounds)

    def digest(self):
        """Return the state words serialized little-endian (16 bytes)."""
        return struct.pack("<4I", *self.state)
