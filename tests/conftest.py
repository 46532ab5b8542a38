import struct

import numpy as np
import pytest


def _make_header(nx, ny, nz, mode=2, nsymbt=0, ispg=0, mz=1, endian='<'):
    """Build the raw bytes of a fixed MRC header the way other programs write it."""
    header = bytearray(1024)
    struct.pack_into(endian + '4i', header, 0, nx, ny, nz, mode)
    struct.pack_into(endian + '3i', header, 28, nx, ny, mz)
    struct.pack_into(endian + '3f', header, 52, 90.0, 90.0, 90.0)
    struct.pack_into(endian + '3f', header, 64, 1.0, 2.0, 3.0)
    struct.pack_into(endian + '2i', header, 88, ispg, nsymbt)
    header[104:108] = b'SERI'
    header[208:212] = b'MAP '
    header[212:216] = b'\x44\x41\x00\x00' if endian == '<' else b'\x11\x11\x00\x00'
    header[224:1024] = b' ' * 800
    return bytes(header)


@pytest.fixture
def make_header():
    return _make_header


@pytest.fixture
def volume() -> np.ndarray:
    """A 4x3x5 volume where every pixel value is unique."""
    return np.arange(60, dtype=np.float32).reshape(4, 3, 5) * 0.5 - 7


@pytest.fixture
def mrc_path(tmp_path):
    return tmp_path / 'test.mrc'


@pytest.fixture
def mrcs_path(tmp_path):
    return tmp_path / 'test.mrcs'
