"""Fixed-size message blocks and the streaming length padder.

A Merkle-Damgard hash consumes its input as 64-byte blocks. The last block
(or the last two) carries the padding: a single 0x80 byte, zero bytes, and
the length of the original input in bits as a 64-bit integer in the last 8
bytes. The padder below produces those blocks lazily from a binary stream,
one at a time, so inputs of any length can be hashed without buffering them.
"""
import enum
import io
import logging
import struct

from errors import StreamModeError

logger = logging.getLogger(__name__)

_PREFIX = {"little": "<", "big": ">"}


class Block:
    """A 64-byte block with explicit word views.

    The words are decoded from the raw bytes at fixed offsets in the
    requested byte order; the block never depends on native memory layout.
    """

    SIZE = 64
    __slots__ = ("data",)

    def __init__(self, data):
        assert len(data) == Block.SIZE, "block must be exactly 64 bytes"
        self.data = bytes(data)

    def words(self, byteorder):
        """Return the block as 16 32-bit words."""
        return struct.unpack(_PREFIX[byteorder] + "16I", self.data)

    def qwords(self, byteorder):
        """Return the block as 8 64-bit words."""
        return struct.unpack(_PREFIX[byteorder] + "8Q", self.data)

    def __bytes__(self):
        return self.data

    def __len__(self):
        return Block.SIZE

    def __eq__(self, other):
        if not isinstance(other, Block):
            return NotImplemented
        return self.data == other.data

    def __hash__(self):
        return hash(self.data)

    def __repr__(self):
        return "Block(%s)" % self.data.hex()


class PadState(enum.Enum):
    READING = "reading"
    PAD_ZERO = "pad-zero"
    FINISHED = "finished"


class Padder:
    """Read a binary stream as padded 64-byte blocks.

    Parameters
    - stream: object with a ``read(n)`` method returning bytes. A read that
              returns no bytes marks the end of the input; shorter reads are
              retried until the block is full.
    - byteorder: "little" (MD5) or "big" (SHA-256); byte order of the
                 trailing 64-bit length field.
    """

    LENGTH_OFFSET = 56

    def __init__(self, stream, byteorder="little"):
        assert byteorder in _PREFIX
        self.stream = stream
        self.byteorder = byteorder
        self.bit_count = 0
        self.status = PadState.READING

    def _fill(self):
        """Read up to 64 bytes, stopping early only at end of input."""
        chunk = b""
        while len(chunk) < Block.SIZE:
            data = self.stream.read(Block.SIZE - len(chunk))
            if not isinstance(data, (bytes, bytearray)):
                if isinstance(data, str):
                    raise StreamModeError("stream must be opened in binary mode")
                # Non-blocking streams return None when no data is available.
                raise StreamModeError("stream returned %r instead of bytes" % (data,))
            if not data:
                break
            chunk += data
        return chunk

    def _length_field(self):
        fmt = _PREFIX[self.byteorder] + "Q"
        return struct.pack(fmt, self.bit_count & 0xffffffffffffffff)

    def next_block(self):
        """Return ``(block, more)``.

        ``more`` is False for the last block of the message. Once the padder
        has finished, ``(None, False)`` is returned.
        """
        if self.status is PadState.FINISHED:
            return None, False

        if self.status is PadState.PAD_ZERO:
            self.status = PadState.FINISHED
            return Block(bytes(self.LENGTH_OFFSET) + self._length_field()), False

        chunk = self._fill()
        n = len(chunk)
        self.bit_count += 8 * n
        if n == Block.SIZE:
            return Block(chunk), True

        # End of input: terminator byte right after the data.
        data = bytearray(chunk)
        data.append(0x80)
        if n < self.LENGTH_OFFSET:
            logger.debug("End of input after %d bits; length fits in the last block",
                         self.bit_count)
            data.extend(bytes(self.LENGTH_OFFSET - len(data)))
            data.extend(self._length_field())
            self.status = PadState.FINISHED
            return Block(data), False

        logger.debug("End of input after %d bits; length goes in an extra block",
                     self.bit_count)
        data.extend(bytes(Block.SIZE - len(data)))
        self.status = PadState.PAD_ZERO
        return Block(data), True

    def __iter__(self):
        while True:
            block, more = self.next_block()
            if block is None:
                return
            yield block
            if not more:
                return


def pad_message(data, byteorder="little"):
    """Return data padded to a multiple of 64 bytes.

    Padding: 0x80 byte, then 0x00 bytes up to 56 mod 64, then the 64-bit
    length in bits in the given byte order.
    """
    return b"".join(bytes(block) for block in Padder(io.BytesIO(data), byteorder))
