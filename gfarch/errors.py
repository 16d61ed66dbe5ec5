"""
GfArch error taxonomy.
"""


class GfArchError(Exception):
    """Base class for GfArch-specific errors."""


# Reading
class ArchiveHeaderError(GfArchError):
    pass


class CompressionHeaderError(GfArchError):
    pass


class UnsupportedCompressionTypeError(GfArchError):
    def __init__(self, code: int):
        super().__init__(f"Unsupported compression type: {code}")
        self.code = code


class TruncatedArchiveError(GfArchError):
    pass


class DecompressionError(GfArchError):
    pass


class BPEDecompressError(DecompressionError):
    pass


class LZ10DecompressError(DecompressionError):
    pass


# Packing preconditions
class ArchivePackError(GfArchError, ValueError):
    pass


class InvalidFilenameError(ArchivePackError):
    pass


class EntryCountMismatchError(ArchivePackError):
    pass


class ArchiveLayoutError(ArchivePackError):
    pass
