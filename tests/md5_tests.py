import hashlib
import unittest

from blocks import Block, pad_message
from digest import hash_bytes
from md5 import IV, MD5, MESSAGE_INDEX, REGISTERS, SHIFT, T, compress


class TestMD5Tables(unittest.TestCase):
    def test_sine_constants(self):
        self.assertEqual(len(T), 64)
        self.assertEqual(T[0], 0xd76aa478)
        self.assertEqual(T[16], 0xf61e2562)
        self.assertEqual(T[32], 0xfffa3942)
        self.assertEqual(T[63], 0xeb86d391)

    def test_every_word_used_once_per_round(self):
        for group in range(4):
            self.assertEqual(sorted(MESSAGE_INDEX[16 * group:16 * group + 16]),
                             list(range(16)))

    def test_shift_pattern(self):
        self.assertEqual(SHIFT[:4], (7, 12, 17, 22))
        self.assertEqual(SHIFT[48:52], (6, 10, 15, 21))
        self.assertEqual(SHIFT[63], 21)

    def test_register_roles_rotate(self):
        self.assertEqual(REGISTERS[0], (0, 1, 2, 3))
        self.assertEqual(REGISTERS[1], (3, 0, 1, 2))
        self.assertEqual(REGISTERS[2], (2, 3, 0, 1))
        self.assertEqual(REGISTERS[3], (1, 2, 3, 0))
        self.assertEqual(REGISTERS[4], REGISTERS[0])


class TestMD5(unittest.TestCase):
    def test_known_answers(self):
        vectors = {
            b"": "d41d8cd98f00b204e9800998ecf8427e",
            b"a": "0cc175b9c0f1b6a831c399e269772661",
            b"abc": "900150983cd24fb0d6963f7d28e17f72",
            b"message digest": "f96b697d7cb7938d525a2f31aaf161d0",
            b"abcdefghijklmnopqrstuvwxyz": "c3fcd3d76192e4007dfb496cca67e13b",
        }
        for message, expected in vectors.items():
            with self.subTest(message=message):
                self.assertEqual(hash_bytes(message).hex(), expected)

    def test_matches_hashlib_at_padding_boundaries(self):
        for length in (55, 56, 57, 63, 64, 65, 119, 120, 1000):
            data = bytes((7 * i) & 0xff for i in range(length))
            with self.subTest(length=length):
                self.assertEqual(hash_bytes(data), hashlib.md5(data).digest())

    def test_compress_mutates_state_in_place(self):
        state = list(IV)
        block = Block(pad_message(b"abc"))
        result = compress(state, block)
        self.assertIs(result, state)
        self.assertNotEqual(state, list(IV))

    def test_compress_accepts_raw_bytes(self):
        padded = pad_message(b"abc")
        self.assertEqual(compress(list(IV), padded), compress(list(IV), Block(padded)))

    def test_compress_rejects_bad_block(self):
        with self.assertRaises(AssertionError):
            compress(list(IV), b"\x00" * 32)

    def test_digest_width(self):
        for length in (0, 1, 64, 300):
            self.assertEqual(len(hash_bytes(b"\xff" * length)), MD5.digest_size)

    def test_fresh_state_per_instance(self):
        first = MD5()
        first.compress(pad_message(b"abc"))
        self.assertEqual(MD5().state, list(IV))
        self.assertEqual(hash_bytes(b"abc"), hash_bytes(b"abc"))

    def test_hasher_compress_returns_state(self):
        md5 = MD5()
        self.assertIs(md5.compress(pad_message(b"abc")), md5.state)

    def test_reduced_rounds_differ(self):
        padded = pad_message(b"Hello, World!")
        digests = set()
        for num_rounds in (1, 2, 3, 4):
            md5 = MD5(num_rounds=num_rounds)
            md5.compress(padded)
            digests.add(md5.digest())
        self.assertEqual(len(digests), 4)

    def test_avalanche(self):
        data = bytearray(b"The quick brown fox jumps over the lazy dog")
        base = int.from_bytes(hash_bytes(bytes(data)), "big")
        data[10] ^= 0x01
        flipped = int.from_bytes(hash_bytes(bytes(data)), "big")
        self.assertGreater(bin(base ^ flipped).count("1"), 32)


if __name__ == "__main__":
    unittest.main(verbosity=1)
