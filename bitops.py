"""32-bit word helpers shared by the MD5 and SHA-256 compressors."""

MASK32 = 0xffffffff


def rotl(x, n):
    """Rotate x left by n bits, modulo 2^32."""
    x = x & MASK32
    return ((x << n) | (x >> (32 - n))) & MASK32


def rotr(x, n):
    """Rotate x right by n bits, modulo 2^32."""
    x = x & MASK32
    return ((x >> n) | (x << (32 - n))) & MASK32


def shr(x, n):
    return (x & MASK32) >> n


def choose(x, y, z):
    """Take the bit of y where x is 1 and the bit of z where x is 0."""
    return ((x & y) | (~x & z)) & MASK32


def majority(x, y, z):
    """Bitwise majority vote of x, y and z."""
    return (x & y) ^ (x & z) ^ (y & z)


def parity(x, y, z):
    return x ^ y ^ z
