"""
iff_errors.py — Exceptions raised while decoding IFF ILBM/PBM images

Benign problems (not an IFF file at all, unknown chunk types) never raise;
they are reported on the decoded document instead. Everything below aborts
the decode.
"""


class ILBMError(ValueError):
    """Base class for hard decode errors."""


class MalformedChunkError(ILBMError):
    """A read ran past the end of the buffer or of a chunk."""


class UnsupportedCompressionError(ILBMError, NotImplementedError):
    def __init__(self, compression: int):
        self.compression = compression
        super().__init__(f"Unsupported BODY compression: {compression}")


class MissingDependencyError(ILBMError):
    """A chunk needs data from a chunk that has not been seen yet."""


class ReservedOpcodeError(ILBMError):
    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(f"Reserved ByteRun1 control byte -128 at offset {offset}")
