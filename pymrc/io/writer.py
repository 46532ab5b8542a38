"""
Writing MRC files. The header is assembled as 256 32-bit words. Non-integer values are placed in
their words by reinterpreting their bits (numpy views), never by numeric conversion.
"""

import io, os
from numpy import ndarray, asarray, zeros, frombuffer, array, dtype, int32, float32, float64

from ..errors import PreconditionError, UnsupportedModeError
from ..general import get_byteorder
from ..header import HDR_LEN, LBL_LEN, LBL_COUNT, default_header, map_tags
from ..modes import MRCMode, SHORT2, dtype_mode
from ._util import check_filename, check_stack_extension, imsave_raw

__all__ = ['image_stats', 'pad_extended_header', 'pack_header', 'prepare_header',
           'write_to', 'write', 'write_image', 'write_array']

HDR_WORDS = HDR_LEN // 4

def image_stats(data):
    """
    Get the minimum, maximum, mean and (population) standard deviation of all pixels. Complex
    data uses the amplitude of each pixel.
    """
    if data.dtype.names == SHORT2.names:
        data = data['real'] + 1j*data['imag'].astype(float32)
    if data.dtype.kind == 'c': data = abs(data)
    return (float32(data.min()), float32(data.max()), float32(data.mean(dtype=float64)), float32(data.std(dtype=float64)))

def pad_extended_header(exthead):
    """
    Get the bytes of the extended header padded with zeros to fill whole 32-bit words. The padding
    depends on the element size: byte data is padded to a multiple of 4 bytes, 16-bit data to a
    multiple of 2 elements and 32-bit data is never padded.
    """
    if isinstance(exthead, ndarray): itemsize, raw = exthead.itemsize, exthead.tobytes()
    else: itemsize, raw = 1, bytes(exthead)
    per_word = 4 // itemsize
    n = len(raw) // itemsize
    if n % per_word: raw += b'\0' * ((per_word - n % per_word) * itemsize)
    return raw

def pack_header(header, byteorder=None):
    """
    Create the 1024 bytes of the fixed header from the header fields using the given byte order.
    All fields are written as given, including the MAP tag and machine stamp.
    """
    endian = get_byteorder(byteorder)
    i4 = dtype(int32).newbyteorder(endian)
    f4 = dtype(float32).newbyteorder(endian)
    def words(*values): return array(values, f4).view(i4)
    h = header
    label = h.label.encode('latin-1').ljust(LBL_LEN*LBL_COUNT, b'\0')

    hdr = zeros(HDR_WORDS, i4)
    hdr[0:10]  = [h.nx, h.ny, h.nz, h.mode, h.nxstart, h.nystart, h.nzstart, h.mx, h.my, h.mz]
    hdr[10:22] = words(h.cella, h.cellb, h.cellc, h.cellalpha, h.cellbeta, h.cellgamma,
                       h.mapc, h.mapr, h.maps, h.dmin, h.dmax, h.dmean)
    hdr[22]    = h.ispg
    hdr[23]    = h.nsymbt
    hdr[24:26] = h.extra_space1
    hdr[26:27] = frombuffer(h.exttype.encode('latin-1'), i4)
    hdr[27]    = h.nversion
    hdr[28:49] = h.extra_space2
    hdr[49:52] = words(h.origin_x, h.origin_y, h.origin_z)
    hdr[52:54] = frombuffer(h.map + h.machst, i4)
    hdr[54:55] = words(h.rms)
    hdr[55]    = h.nlabl
    hdr[56:]   = frombuffer(label, i4)
    return hdr.tobytes()

def prepare_header(data, header, byteorder=None):
    """
    Create the header that will be written for the data. The given header is not modified. The
    copy has the mode of the data type, the min/max/mean of the data in DMIN/DMAX/DMEAN, the
    standard deviation in RMS and the MAP tag and machine stamp of the byte order. If the extended
    header needs padding NSYMBT is the padded length.
    """
    if not isinstance(data, ndarray): raise PreconditionError('MRC image data must be a numpy array')
    if header.mode == MRCMode.Byte3: raise UnsupportedModeError(int(header.mode))
    mode = dtype_mode(data.dtype)
    if data.ndim not in (2, 3): raise PreconditionError('MRC image data must be 2D or 3D')
    if data.size == 0 or min(header.nx, header.ny, header.nz) < 1:
        raise PreconditionError('MRC image data cannot be empty (dims are %dx%dx%d)' % (header.nx, header.ny, header.nz))
    if data.shape + (1,)*(3-data.ndim) != (header.nx, header.ny, header.nz):
        raise PreconditionError('Image dimensions %s do not match the header dimensions (%d, %d, %d)' %
                                (data.shape, header.nx, header.ny, header.nz))
    if len(header.exthead_bytes) != header.nsymbt:
        raise PreconditionError('The extended header is %d bytes but NSYMBT is %d' % (len(header.exthead_bytes), header.nsymbt))

    h = header.copy()
    h.mode = mode
    h.dmin, h.dmax, h.dmean, h.rms = image_stats(data)
    h.map, h.machst = map_tags(byteorder)
    if h.nsymbt > 0:
        h.exthead = pad_extended_header(header.exthead)
        h.nsymbt = len(h.exthead)
    return h

def _disk_order(data, endian):
    # reverse of reading: X becomes the fastest changing axis
    data = data.T if data.ndim == 2 else data.transpose(2, 1, 0)
    dt = data.dtype
    if dt.fields is None: dt = dt.newbyteorder(endian)
    else: dt = dtype([(name, dt.fields[name][0].newbyteorder(endian)) for name in dt.names])
    return data.astype(dt, order='C', copy=False)

def _encode(data, header, endian):
    h = prepare_header(data, header, endian)
    hdr = pack_header(h, endian)
    if h.nsymbt > 0: hdr += h.exthead
    return h, hdr, _disk_order(data, endian)

def write_to(f, data, header, byteorder=None):
    """
    Write the header, extended header and pixel data to a binary file-like object. Returns the
    header that was written (see prepare_header).
    """
    h, hdr, data = _encode(data, header, get_byteorder(byteorder))
    f.write(hdr)
    imsave_raw(f, data)
    return h

def write(data, header, filename, byteorder=None):
    """
    Write data to an MRC file using the given header. The data must be a 2D or 3D numpy array
    with the shape (NX, NY[, NZ]) given in the header. The mode and statistics are derived from
    the data. The byte order defaults to the host byte order. Returns the header that was written.

    All checks are done before the file is opened so a failed write leaves existing files alone.
    """
    filename = os.fspath(filename)
    is_stack = check_filename(filename)
    h, hdr, data = _encode(data, header, get_byteorder(byteorder))
    with io.open(filename, 'wb') as f:
        f.write(hdr)
        imsave_raw(f, data)
    check_stack_extension(is_stack, h.dim)
    return h

def write_image(image, filename=None, byteorder=None):
    """Write an MRCImage to a file, by default the file it was read from."""
    if filename is None: filename = image.filename
    if filename is None: raise PreconditionError('No filename given for the MRC image')
    return write(image.data, image.header, filename, byteorder)

__kinds = {
    # kind: (ISPG, MZ is the number of sections)
    'image':  (0, False),
    'stack':  (0, True),
    'volume': (1, True),
    }

def write_array(data, filename, kind='image', byteorder=None):
    """
    Write data to an MRC file using a default header. The dimensions are taken from the data
    shape and kind is one of:
        'image'   a single image (ISPG=0, MZ=1)
        'stack'   a stack of images (ISPG=0, MZ=NZ)
        'volume'  a single volume (ISPG=1, MZ=NZ)
    Returns the header that was written.
    """
    if kind not in __kinds: raise PreconditionError('"%s" is not a supported MRC format kind (image, stack, or volume)' % kind)
    data = asarray(data)
    if data.ndim not in (2, 3): raise PreconditionError('MRC image data must be 2D or 3D')
    ispg, mz_is_nz = __kinds[kind]
    nz = data.shape[2] if data.ndim == 3 else 1
    h = default_header(byteorder)
    h.nx, h.ny, h.nz = data.shape[0], data.shape[1], nz
    h.ispg = ispg
    h.mz = nz if mz_is_nz else 1
    return write(data, h, filename, byteorder)
