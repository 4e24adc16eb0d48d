"""CNF encoding of the MD5 compressor using PySAT.

The circuit is built from the same per-step tables as md5.compress
(REGISTERS, MESSAGE_INDEX, SHIFT, T), so solving a fully constrained
instance reproduces the digest of the direct implementation. Leaving some
message bits free and constraining the digest turns the instance into a
preimage search over those bits; reduced-round instances (num_rounds < 4)
stay small enough for experiments.
"""
import logging

from pysat.solvers import Solver

from blocks import Block, pad_message
from md5 import IV, MESSAGE_INDEX, REGISTERS, SHIFT, T

logger = logging.getLogger(__name__)


def swap_bytes(bits):
    """Reverse the byte order of a bit vector; bit order inside each byte is kept."""
    return [bit for k in reversed(range(len(bits) // 8))
            for bit in bits[8 * k:8 * k + 8]]


class CnfBuilder:
    """Allocate SAT variables and add gate clauses to a solver.

    A word is a list of variable ids, most significant bit first. Every gate
    takes an optional output word; a fresh one is allocated when it is None.
    """

    def __init__(self, solver_name="g4"):
        self.solver = Solver(name=solver_name)
        self.next_var = 1

    def bit(self):
        var = self.next_var
        self.next_var += 1
        return var

    def word(self, width=32):
        return [self.bit() for _ in range(width)]

    def _output(self, a, out):
        if out is None:
            return self.word(len(a))
        assert len(out) == len(a)
        return out

    def add_clause(self, clause):
        self.solver.add_clause(clause)

    def constant(self, bits, value, free_bits=()):
        """Fix bits to value (MSB first); positions in free_bits stay unconstrained."""
        assert value < 2 ** len(bits)
        for i, var in enumerate(bits):
            if i in free_bits:
                continue
            if (value >> (len(bits) - i - 1)) & 1:
                self.add_clause([var])
            else:
                self.add_clause([-var])
        return bits

    def not_(self, a, out=None):
        out = self._output(a, out)
        for x, z in zip(a, out):
            self.add_clause([-x, -z])
            self.add_clause([x, z])
        return out

    def and_(self, a, b, out=None):
        assert len(a) == len(b)
        out = self._output(a, out)
        for x, y, z in zip(a, b, out):
            self.add_clause([-x, -y, z])
            self.add_clause([x, -z])
            self.add_clause([y, -z])
        return out

    def or_(self, a, b, out=None):
        assert len(a) == len(b)
        out = self._output(a, out)
        for x, y, z in zip(a, b, out):
            self.add_clause([x, y, -z])
            self.add_clause([-x, z])
            self.add_clause([-y, z])
        return out

    def xor(self, a, b, out=None):
        assert len(a) == len(b)
        out = self._output(a, out)
        for x, y, z in zip(a, b, out):
            self.add_clause([-x, -y, -z])
            self.add_clause([x, y, -z])
            self.add_clause([x, -y, z])
            self.add_clause([-x, y, z])
        return out

    def add(self, a, b, out=None):
        """out = a + b modulo 2^n (ripple-carry adder from the LSB)."""
        assert len(a) == len(b)
        out = self._output(a, out)
        carry = None
        for i in reversed(range(len(a))):
            if carry is None:
                # Half adder on the LSB.
                self.xor([a[i]], [b[i]], [out[i]])
                if i > 0:
                    carry = self.and_([a[i]], [b[i]])[0]
                continue
            half = self.xor([a[i]], [b[i]])
            self.xor(half, [carry], [out[i]])
            if i > 0:
                carry = self.or_(self.and_([a[i]], [b[i]]),
                                 self.and_(half, [carry]))[0]
        return out

    @staticmethod
    def rotl(a, n):
        """Rotate left by n bits; a pure rewiring, no clauses are needed."""
        n %= len(a)
        return a[n:] + a[:n]

    @staticmethod
    def _value(model, var):
        return var <= len(model) and model[var - 1] > 0

    def read_int(self, model, bits):
        value = 0
        for var in bits:
            value = (value << 1) | self._value(model, var)
        return value

    def read_bytes(self, model, bits):
        assert len(bits) % 8 == 0
        return bytes(self.read_int(model, bits[i:i + 8])
                     for i in range(0, len(bits), 8))


class MD5Circuit:
    """MD5 over one or more padded blocks, encoded as CNF.

    Parameters
    - message: bytes, a multiple of 64 bytes (already padded).
    - free_bits: iterable of bit indices into message (bit 0 is the MSB of
                 byte 0) that are left unconstrained.
    - target_digest: optional 16-byte digest the final state must match.
    - state: initial chaining value, defaults to the MD5 IV.
    - num_rounds: 1 to 4 groups of 16 steps.
    """

    def __init__(self, message, free_bits=(), target_digest=None, state=None,
                 num_rounds=4, solver_name="g4"):
        assert message and len(message) % Block.SIZE == 0
        assert num_rounds in [1, 2, 3, 4]
        assert target_digest is None or len(target_digest) == 16
        self.cnf = CnfBuilder(solver_name)
        self.num_blocks = len(message) // Block.SIZE
        self.num_rounds = num_rounds
        self.target_digest = target_digest
        self.message = self.cnf.word(8 * len(message))
        self.final_state = None

        free = {}
        for bit in free_bits:
            assert 0 <= bit < len(self.message), "free bit outside the message"
            free.setdefault(bit // 8, set()).add(bit % 8)
        for i, value in enumerate(message):
            self.cnf.constant(self.message[8 * i:8 * i + 8], value, free.get(i, ()))
        self.initial_state = [self.cnf.constant(self.cnf.word(), w)
                              for w in (state if state is not None else IV)]

    @classmethod
    def from_message(cls, data, **kwargs):
        """Build the circuit for an unpadded message."""
        return cls(pad_message(data, "little"), **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.cnf.solver.delete()

    def interrupt(self):
        self.cnf.solver.interrupt()

    def message_word(self, block_index, k):
        """Word k of a block as an MSB-first vector (MD5 words are little-endian)."""
        start = (16 * block_index + k) * 32
        return swap_bytes(self.message[start:start + 32])

    def round_function(self, i, b, c, d):
        cnf = self.cnf
        group = i // 16
        if group == 0:
            return cnf.or_(cnf.and_(b, c), cnf.and_(cnf.not_(b), d))
        elif group == 1:
            return cnf.or_(cnf.and_(b, d), cnf.and_(c, cnf.not_(d)))
        elif group == 2:
            return cnf.xor(cnf.xor(b, c), d)
        elif group == 3:
            return cnf.xor(c, cnf.or_(b, cnf.not_(d)))
        else:
            raise ValueError("Invalid step index")

    def compress_block(self, state, block_index):
        """Encode all steps for one block; return the chained state words."""
        cnf = self.cnf
        r = list(state)
        for i in range(16 * self.num_rounds):
            a, b, c, d = REGISTERS[i]
            f = self.round_function(i, r[b], r[c], r[d])
            x = self.message_word(block_index, MESSAGE_INDEX[i])
            k = cnf.constant(cnf.word(), T[i])
            comb = cnf.add(cnf.add(r[a], f), cnf.add(x, k))
            r[a] = cnf.add(r[b], cnf.rotl(comb, SHIFT[i]))
        return [cnf.add(s, w) for s, w in zip(state, r)]

    def encode(self):
        if self.final_state is not None:
            return self.final_state
        state = self.initial_state
        for n in range(self.num_blocks):
            state = self.compress_block(state, n)
        if self.target_digest is not None:
            for k, word in enumerate(state):
                chunk = self.target_digest[4 * k:4 * k + 4]
                self.cnf.constant(word, int.from_bytes(chunk, "little"))
        self.final_state = state
        logger.debug("MD5 circuit: %d blocks, %d rounds, %d vars, %d clauses",
                     self.num_blocks, self.num_rounds, self.cnf.next_var - 1,
                     self.cnf.solver.nof_clauses())
        return state

    def solve(self):
        """Encode and solve.

        Returns (False, None) if unsatisfiable or interrupted, otherwise
        (True, (message_bytes, digest_bytes)).
        """
        state = self.encode()
        sat = self.cnf.solver.solve_limited(expect_interrupt=True)
        if not sat:
            return False, None
        model = self.cnf.solver.get_model()
        message = self.cnf.read_bytes(model, self.message)
        digest = b"".join(self.cnf.read_int(model, word).to_bytes(4, "little")
                          for word in state)
        return True, (message, digest)
