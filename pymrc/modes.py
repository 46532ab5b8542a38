"""
MRC pixel modes. The tables here are the only place where modes are mapped to numpy data types,
they are used for both reading and writing.
"""

from enum import IntEnum
from numpy import dtype, int8, uint8, int16, uint16, int32, float32, complex64

from .errors import UnsupportedModeError, UnknownModeError, PreconditionError
from .general import get_byteorder

__all__ = ['MRCMode', 'SHORT2', 'RGB24', 'mode_dtype', 'mode_itemsize', 'dtype_mode']

class MRCMode(IntEnum):
    Byte    =  0 # 8 bit, unsigned
    Short   =  1 # 16 bit, signed
    Float   =  2 # 32 bit
    Short2  =  3 # 32 bit, complex, signed
    Float2  =  4 # 64 bit, complex
    UShort  =  6 # 16 bit, unsigned
    Int     =  7 # 32 bit, signed
    Byte3   = 16 # 24 bit, rgb (not supported)

# Complex 16-bit integers have no numpy scalar type so they are kept as a pair
SHORT2 = dtype([('real', int16), ('imag', int16)])
RGB24 = dtype([('r', uint8), ('g', uint8), ('b', uint8)])

_mode2dtype = {
    MRCMode.Byte:   dtype(uint8),
    MRCMode.Short:  dtype(int16),
    MRCMode.Float:  dtype(float32),
    MRCMode.Short2: SHORT2,
    MRCMode.Float2: dtype(complex64),
    MRCMode.UShort: dtype(uint16),
    MRCMode.Int:    dtype(int32),
}
_dtype2mode = {
    uint8:MRCMode.Byte, int8:MRCMode.Byte, int16:MRCMode.Short, float32:MRCMode.Float,
    complex64:MRCMode.Float2, uint16:MRCMode.UShort, int32:MRCMode.Int,
}

def _check_mode(mode):
    if mode == MRCMode.Byte3: raise UnsupportedModeError(int(mode))
    if mode not in _mode2dtype: raise UnknownModeError(int(mode))
    return MRCMode(int(mode))

def mode_dtype(mode, byteorder=None):
    """
    Get the numpy dtype used for pixels of the given mode with the given byte order (defaults to
    the host byte order). Mode 16 raises UnsupportedModeError and any value that is not a mode
    raises UnknownModeError.
    """
    dt = _mode2dtype[_check_mode(mode)]
    endian = get_byteorder(byteorder)
    if dt.fields is None: return dt.newbyteorder(endian)
    return dtype([(name, dt.fields[name][0].newbyteorder(endian)) for name in dt.names])

def mode_itemsize(mode):
    """Number of bytes used by a single pixel of the given mode."""
    return _mode2dtype[_check_mode(mode)].itemsize

def dtype_mode(dt):
    """
    Get the mode used to save pixels of the given dtype. Byte order is ignored. Data types without
    a mode raise PreconditionError, RGB data raises the same UnsupportedModeError as reading mode 16.
    """
    dt = dtype(dt)
    if dt.fields is not None:
        plain = dtype([(name, dt.fields[name][0].newbyteorder('=')) for name in dt.names])
        if plain == SHORT2: return MRCMode.Short2
        if plain == RGB24: raise UnsupportedModeError(int(MRCMode.Byte3))
        raise PreconditionError('Data type %s is not supported by MRC files' % dt)
    mode = _dtype2mode.get(dt.type, None)
    if mode is None: raise PreconditionError('Data type %s is not supported by MRC files' % dt)
    return mode
