"""Shared fixtures."""

import pytest

from gfarch.compression import Codec
from gfarch.model import CompressionScheme


class IdentityCodec(Codec):
    """Stores the payload as-is so tests can see where every byte lands."""

    def __init__(self, scheme):
        self.scheme = scheme

    def encode(self, payload):
        return bytes(payload)

    def decode(self, chunk, decompressed_size):
        return bytes(chunk)


@pytest.fixture
def identity_codecs():
    return {scheme: IdentityCodec(scheme) for scheme in CompressionScheme}


@pytest.fixture
def sample_entries():
    return [
        ("sea_turtle_01.brres", b"\x01" * 5),
        ("bg.tpl", bytes(range(20))),
        ("empty.bin", b""),
        ("level.map", b"MAP\x00" * 8),
    ]
