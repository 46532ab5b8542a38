"""Utilities for IO library use."""

import os, io, re
from warnings import warn
from numpy import fromfile, empty, nditer, uint8

from ..errors import PreconditionError, TruncationError, MRCWarning

__re_ext = re.compile(r'.+\.mrcs?$')
__re_stack = re.compile(r'.+\.mrcs$')

def check_filename(filename):
    """
    Make sure the filename has an MRC extension: .mrc for single images and volumes, .mrcs for
    stacks. Returns True if the filename uses the stack extension.
    """
    filename = os.fspath(filename)
    if __re_ext.match(filename) is None: raise PreconditionError('The file "%s" does not have an expected MRC extension (.mrc or .mrcs)' % filename)
    return __re_stack.match(filename) is not None

def check_stack_extension(is_stack, dim):
    """Warn when the image stack extension does not agree with the header's DIM value."""
    if dim is None: return
    if is_stack and dim != 1:
        warn('Metadata indicates that this is NOT an image stack but the file is using the extension .mrcs', MRCWarning, 3)
    elif not is_stack and dim == 1:
        warn('Metadata indicates that this is an image stack but the file is NOT using the extension .mrcs', MRCWarning, 3)

def isfileobj(f):
    """
    Checks if a file object is backed by a real file so numpy.fromfile and ndarray.tofile can be
    used with it directly.
    """
    if not isinstance(f, (io.FileIO, io.BufferedReader, io.BufferedWriter, io.BufferedRandom)): return False
    try: return int(f.fileno()) >= 0
    except (OSError, ValueError): return False

def get_file_size(f):
    """Get the size of a file, either from the file-number or seeking and telling."""
    try:
        return os.fstat(f.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        position = f.tell()
        size = f.seek(0, io.SEEK_END)
        f.seek(position)
        return size

def remaining_bytes(f):
    """
    Number of bytes between the current position of a file and its end. The file must be
    seekable.
    """
    if not f.seekable(): raise PreconditionError('MRC image data can only be read from a seekable file')
    return max(get_file_size(f) - f.tell(), 0)

def read_exact(f, n):
    """Read exactly n bytes from the file, raising TruncationError if the file ends first."""
    data = f.read(n)
    if len(data) != n: raise TruncationError('MRC file does not have enough bytes (expected %d, found %d)' % (n, len(data)))
    return data

def imread_raw(f, count, dtype):
    """
    Read count elements of the raw image data from a file or file-like object. The returned array
    is flat and owns its data.
    """
    if isfileobj(f):
        im = fromfile(f, dtype, count=count)
        if im.size != count: raise TruncationError('MRC file does not have enough bytes for the image data')
        return im
    im = empty(count, dtype)
    buf = memoryview(im.view(uint8))
    n = 0
    while n < len(buf):
        read = f.readinto(buf[n:])
        if not read: raise TruncationError('MRC file does not have enough bytes for the image data')
        n += read
    return im

def imsave_raw(f, im):
    """Save the raw image data in C order to a file or file-like object."""
    if isfileobj(f) and im.flags.c_contiguous:
        f.flush()
        im.tofile(f)
    else:
        for c in nditer(im, flags=['external_loop','buffered','zerosize_ok'], buffersize=max(16777216//im.itemsize,1), order='C'):
            f.write(c.tobytes())
