"""
Reading MRC files. The header is read with struct, the pixel data with numpy. Pixel data is
stored on disk with X (columns) changing fastest, then Y (rows), then Z (sections). In memory the
axes are reordered so the array is indexed as im[x, y] or im[x, y, z].
"""

import io, os

from ..errors import PreconditionError, FormatError, RangeError
from ..general import sys_endian, prod, unpack
from ..header import HEADER_FORMAT, HDR_LEN, MAP_REV, header_from_values
from ..image import MRCImage
from ..modes import mode_dtype, mode_itemsize
from ._util import check_filename, check_stack_extension, read_exact, remaining_bytes, imread_raw

__all__ = ['read_header', 'read_image', 'read', 'effective_slices', 'detect_byteorder']

__stamps = {
    b"\x44\x41\x00\x00":'<', b"\x44\x00\x00\x00":'<', # little endian (and the alternate used by some programs)
    b"\x11\x11\x00\x00":'>', b"\x11\x00\x00\x00":'>', # big endian
    b"\x00\x00\x41\x44":'>',                          # big endian as written by this library
    }

def detect_byteorder(map_, stamp):
    """
    Determine the byte order of the numbers in the header and pixel data from the MAP tag and the
    machine stamp. When neither identifies the byte order the host byte order is used.
    """
    endian = __stamps.get(bytes(stamp))
    if endian is None and bytes(map_) == MAP_REV: endian = '>'
    return endian or sys_endian

def read_header(f):
    """
    Read the fixed 1024 byte header and the extended header from a binary file-like object
    positioned at the start of the file. Afterwards the file is positioned at the start of the
    pixel data (1024+NSYMBT). Raises TruncationError if the file is too short and FormatError if
    the dimensions or extended header length are invalid.
    """
    raw = read_exact(f, HDR_LEN)
    endian = detect_byteorder(raw[208:212], raw[212:216])
    h = header_from_values(unpack(endian + HEADER_FORMAT, raw))
    if h.nx <= 0 or h.ny <= 0 or h.nz <= 0: raise FormatError('MRC file is invalid (dims are %dx%dx%d)' % (h.nx, h.ny, h.nz))
    if h.nsymbt < 0: raise FormatError('MRC file is invalid (extended header size is %d)' % h.nsymbt)
    if h.nsymbt > 0: h.exthead = read_exact(f, int(h.nsymbt))
    return h

def effective_slices(nz, start_slice=1, num_slices=0):
    """
    The number of slices read when starting at the 1-based start_slice and reading num_slices
    slices (0 meaning all remaining). Requests for more slices than remain are reduced to the
    number remaining.
    """
    remaining = max(int(nz) - (start_slice - 1), 0)
    return remaining if num_slices == 0 else min(remaining, num_slices)

def read_image(f, header, start_slice=1, num_slices=0):
    """
    Read the pixel data from a file positioned at the start of the pixel data (as left by
    read_header). The file must be seekable. Reading starts at the 1-based slice start_slice and
    reads num_slices slices (0 for all remaining slices). The returned array has the shape (NX, NY)
    when NZ is 1 and (NX, NY, slices) otherwise and uses the host byte order.

    Raises UnsupportedModeError or UnknownModeError for modes that cannot be read and RangeError
    when the requested slices are not available in the file. All checks happen before the pixel
    data is read.
    """
    itemsize = mode_itemsize(header.mode)
    if start_slice < 1: raise PreconditionError('start_slice must be at least 1')
    if num_slices < 0: raise PreconditionError('num_slices cannot be negative')
    nx, ny, nz = int(header.nx), int(header.ny), int(header.nz)
    slc_bytes = nx * ny * itemsize

    available = remaining_bytes(f)
    skip = (start_slice - 1) * slc_bytes
    if start_slice > nz or skip > available: raise RangeError('MRC file: cannot start at slice %d' % start_slice)
    nslices = effective_slices(nz, start_slice, num_slices)
    shape = (nslices, ny, nx)
    if prod(shape) * itemsize > available - skip: raise RangeError('MRC file: cannot read the requested slices (%d slices from slice %d)' % (nslices, start_slice))

    endian = detect_byteorder(header.map, header.machst)
    if skip: f.seek(skip, io.SEEK_CUR)
    im = imread_raw(f, prod(shape), mode_dtype(header.mode, endian))
    im = im.astype(mode_dtype(header.mode), copy=False).reshape(shape)
    # file is row-major with X fastest, make X the first axis
    return im[0].T if nz == 1 else im.transpose(2, 1, 0)

def read(filename, start_slice=1, num_slices=0):
    """
    Read an MRC file (extension .mrc or .mrcs), returning an MRCImage which unpacks to the pixel
    data and the header. See read_image for the meaning of start_slice and num_slices.
    """
    filename = os.fspath(filename)
    is_stack = check_filename(filename)
    with io.open(filename, 'rb') as f:
        h = read_header(f)
        im = read_image(f, h, start_slice, num_slices)
    check_stack_extension(is_stack, h.dim)
    return MRCImage(im, h, filename)
