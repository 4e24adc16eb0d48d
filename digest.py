"""Drive the padder and a compressor over a whole input stream.

This is the only place where blocks and hash state meet: the padder is
pulled until it reports the last block, each block is compressed into a
fresh hash state, and the serialized state is returned as raw bytes.
"""
import io
import logging

from blocks import Padder
from errors import UnsupportedAlgorithmError
from md5 import MD5
from sha256 import SHA256

logger = logging.getLogger(__name__)

ALGORITHMS = {
    MD5.name: MD5,
    SHA256.name: SHA256,
}


def get_algorithm(name):
    """Return the hasher class registered under name (case-insensitive)."""
    try:
        return ALGORITHMS[name.lower()]
    except KeyError:
        raise UnsupportedAlgorithmError(
            "unknown algorithm %r (choose from %s)"
            % (name, ", ".join(sorted(ALGORITHMS)))) from None


def hash_stream(stream, algorithm=MD5):
    """Hash everything readable from a binary stream; return the digest bytes."""
    hasher = algorithm()
    padder = Padder(stream, byteorder=algorithm.byteorder)
    num_blocks = 0
    while True:
        block, more = padder.next_block()
        if block is None:
            break
        hasher.compress(block)
        num_blocks += 1
        if not more:
            break
    logger.debug("%s: %d bits in %d blocks", algorithm.name,
                 padder.bit_count, num_blocks)
    return hasher.digest()


def hash_bytes(data, algorithm=MD5):
    return hash_stream(io.BytesIO(data), algorithm)


def hash_file(path, algorithm=MD5):
    """Hash the file at path; errors opening or reading it propagate."""
    with open(path, "rb") as f:
        return hash_stream(f, algorithm)
