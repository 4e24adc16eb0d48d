"""SHA-256 compression function (FIPS 180-4).

Same interface as md5.MD5: an exclusively owned state of 32-bit words,
compress() per 64-byte block, digest() when the padder is exhausted. The
block words and the length field are big-endian.
"""
import struct

from bitops import MASK32, choose, majority, rotr, shr
from blocks import Block

# First 32 bits of the fractional parts of the square roots of the first 8 primes
IV = (
    0x6a09e667, 0xbb67ae85, 0x3c6ef372, 0xa54ff53a,
    0x510e527f, 0x9b05688c, 0x1f83d9ab, 0x5be0cd19,
)

# First 32 bits of the fractional parts of the cube roots of the first 64 primes
K = (
    0x428a2f98, 0x71374491, 0xb5c0fbcf, 0xe9b5dba5,
    0x3956c25b, 0x59f111f1, 0x923f82a4, 0xab1c5ed5,
    0xd807aa98, 0x12835b01, 0x243185be, 0x550c7dc3,
    0x72be5d74, 0x80deb1fe, 0x9bdc06a7, 0xc19bf174,
    0xe49b69c1, 0xefbe4786, 0x0fc19dc6, 0x240ca1cc,
    0x2de92c6f, 0x4a7484aa, 0x5cb0a9dc, 0x76f988da,
    0x983e5152, 0xa831c66d, 0xb00327c8, 0xbf597fc7,
    0xc6e00bf3, 0xd5a79147, 0x06ca6351, 0x14292967,
    0x27b70a85, 0x2e1b2138, 0x4d2c6dfc, 0x53380d13,
    0x650a7354, 0x766a0abb, 0x81c2c92e, 0x92722c85,
    0xa2bfe8a1, 0xa81a664b, 0xc24b8b70, 0xc76c51a3,
    0xd192e819, 0xd6990624, 0xf40e3585, 0x106aa070,
    0x19a4c116, 0x1e376c08, 0x2748774c, 0x34b0bcb5,
    0x391c0cb3, 0x4ed8aa4a, 0x5b9cca4f, 0x682e6ff3,
    0x748f82ee, 0x78a5636f, 0x84c87814, 0x8cc70208,
    0x90befffa, 0xa4506ceb, 0xbef9a3f7, 0xc67178f2,
)


def big_sigma0(x):
    return rotr(x, 2) ^ rotr(x, 13) ^ rotr(x, 22)


def big_sigma1(x):
    return rotr(x, 6) ^ rotr(x, 11) ^ rotr(x, 25)


def small_sigma0(x):
    return rotr(x, 7) ^ rotr(x, 18) ^ shr(x, 3)


def small_sigma1(x):
    return rotr(x, 17) ^ rotr(x, 19) ^ shr(x, 10)


def schedule(block):
    """Expand the 16 big-endian block words into the 64-word schedule."""
    if not isinstance(block, Block):
        block = Block(block)
    w = list(block.words("big"))
    for t in range(16, 64):
        w.append((small_sigma1(w[t - 2]) + w[t - 7] +
                  small_sigma0(w[t - 15]) + w[t - 16]) & MASK32)
    return w


def compress(state, block):
    """Mix one 64-byte block into state (a list of 8 words), in place."""
    w = schedule(block)
    a, b, c, d, e, f, g, h = state

    for t in range(64):
        t1 = (h + big_sigma1(e) + choose(e, f, g) + K[t] + w[t]) & MASK32
        t2 = (big_sigma0(a) + majority(a, b, c)) & MASK32
        h = g
        g = f
        f = e
        e = (d + t1) & MASK32
        d = c
        c = b
        b = a
        a = (t1 + t2) & MASK32

    for k, v in enumerate((a, b, c, d, e, f, g, h)):
        state[k] = (state[k] + v) & MASK32
    return state


class SHA256:
    """Running SHA-256 state."""

    name = "sha256"
    digest_size = 32
    block_size = Block.SIZE
    byteorder = "big"

    def __init__(self):
        self.state = list(IV)

    def compress(self, block):
        return compress(self.state, block)

    def digest(self):
        return struct.pack(">8I", *self.state)
