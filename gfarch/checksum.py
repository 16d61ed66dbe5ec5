"""
Filename checksum stored in each entry record.
"""

from typing import Union

CHECKSUM_MULTIPLIER = 137


def checksum(name: Union[str, bytes]) -> int:
    """Hash a filename to a u32, wrapping on overflow. Every byte counts, NUL included."""
    if isinstance(name, str):
        name = name.encode("latin-1")

    result = 0
    for byte in name:
        result = (byte + result * CHECKSUM_MULTIPLIER) & 0xFFFFFFFF
    return result
