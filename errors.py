"""
Custom errors/exceptions.
"""


class HashError(Exception):
    """Base class for errors raised while hashing a stream"""
    pass


class StreamModeError(HashError, TypeError):
    """The input stream yields text instead of bytes"""
    pass


class UnsupportedAlgorithmError(HashError, ValueError):
    """No compressor is registered under the requested name"""
    pass
