"""
Command-line entry point: print the digest of a single file.

    mdhash [-a md5|sha256] [--upper] [-v] FILE
"""

import argparse
import logging
import sys

from digest import ALGORITHMS, get_algorithm, hash_stream


def build_parser():
    parser = argparse.ArgumentParser(
        prog="mdhash",
        description="Compute the MD5 or SHA-256 digest of a file.",
    )
    parser.add_argument("file", help="file to hash (read in binary mode)")
    parser.add_argument(
        "-a", "--algorithm",
        default="md5",
        choices=sorted(ALGORITHMS),
        help="hash algorithm (default: %(default)s)",
    )
    parser.add_argument("--upper", action="store_true",
                        help="print the digest in uppercase hex")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log padding and block counts")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    algorithm = get_algorithm(args.algorithm)

    try:
        stream = open(args.file, "rb")
    except OSError as exc:
        print("Error: couldn't open file %s: %s" % (args.file, exc.strerror),
              file=sys.stderr)
        return 1

    with stream:
        digest = hash_stream(stream, algorithm)

    text = digest.hex()
    if args.upper:
        text = text.upper()
    print("%s  %s" % (text, args.file))
    return 0


if __name__ == "__main__":
    sys.exit(main())
