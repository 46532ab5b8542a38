"""Utilities for library use."""

import sys, struct, functools
from operator import mul

sys_endian = '<' if sys.byteorder == 'little' else '>'

__byteorders = {
    '<':'<', 'little':'<', 'l':'<',
    '>':'>', 'big':'>', 'b':'>',
    '=':sys_endian, 'native':sys_endian, '|':sys_endian,
    }

def get_byteorder(byteorder=None):
    """
    Normalize a byte order specification to '<' or '>'. Accepts the numpy characters (<, >, =),
    the names used by sys.byteorder ('little', 'big') and None which means the host byte order.
    """
    if byteorder is None: return sys_endian
    try: return __byteorders[byteorder.lower() if isinstance(byteorder, str) else byteorder]
    except (KeyError, TypeError): raise ValueError('Invalid byte order %r' % (byteorder,))

def prod(itr): return functools.reduce(mul, itr, 1)


##### struct utilities #####
def unpack(fmt, b): return struct.unpack(fmt, b)
