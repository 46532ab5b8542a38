"""
MRC header record. The fixed part of the header is 1024 bytes: 56 4-byte words followed by ten
80-character labels. The extended header follows it and is NSYMBT bytes long.

See https://www.ccpem.ac.uk/mrc_format/mrc2014.php for the MRC2014 description of the fields.
"""

from collections import OrderedDict
from collections.abc import Mapping
from warnings import warn
from numpy import ndarray, int32, float32

from .errors import MRCWarning
from .general import get_byteorder

__all__ = ['MRCHeader', 'default_header', 'dimension_class', 'extension_format',
           'header_from_values', 'FIELDS', 'HEADER_FORMAT', 'HDR_LEN', 'LBL_LEN', 'LBL_COUNT', 'map_tags']

HDR_LEN = 1024
LBL_LEN = 80
LBL_COUNT = 10

MAP_ = b"MAP "
MAP_REV = b" PAM"
STAMP_LITTLE = bytes(bytearray([68, 65, 0, 0]))
STAMP_BIG = bytes(bytearray([0, 0, 65, 68]))

def map_tags(byteorder=None):
    """Get the MAP tag and machine stamp written for the given byte order."""
    return (MAP_, STAMP_LITTLE) if get_byteorder(byteorder) == '<' else (MAP_REV, STAMP_BIG)


##### Field casts #####
def _int(value): return int32(value)
def _float(value): return float32(value)
def _ints(n):
    def cast(value):
        value = tuple(int32(x) for x in value)
        if len(value) != n: raise ValueError('expected %d integers' % n)
        return value
    return cast
def _tag(value):
    # 4 characters not influenced by byte ordering
    if isinstance(value, str): value = value.encode('latin-1')
    value = bytes(value)
    if len(value) != 4: raise ValueError('tags must be exactly 4 bytes')
    return value
def _check_latin1(text):
    try: text.encode('latin-1')
    except UnicodeEncodeError: raise ValueError('label text must only contain latin-1 characters')
def _text(value):
    if isinstance(value, bytes): value = value.decode('latin-1')
    if len(value) > LBL_LEN*LBL_COUNT: raise ValueError('label text is limited to %d characters' % (LBL_LEN*LBL_COUNT))
    _check_latin1(value)
    return str(value)
def _exttype(value): return _tag(value).decode('latin-1')
def _exthead(value):
    if isinstance(value, ndarray):
        if value.ndim != 1 or value.dtype.kind not in 'iu' or value.itemsize not in (1,2,4):
            raise ValueError('extended header arrays must be 1D integer arrays with 1, 2 or 4 byte elements')
        return value.copy()
    return bytes(value)

class _Field(object):
    """A header field: its cast, default value, struct format code and number of values."""
    __slots__ = ('cast', 'default', 'fmt', 'count')
    def __init__(self, cast, default, fmt, count=1):
        self.cast, self.default, self.fmt, self.count = cast, default, fmt, count

# Order is the order on disk
FIELDS = OrderedDict([
    ('nx',_Field(_int,1,'i')), ('ny',_Field(_int,1,'i')), ('nz',_Field(_int,1,'i')),       # number of columns, rows, and sections
    ('mode',_Field(_int,0,'i')),                                                            # pixel type (0-4, 6, 7, 16)
    ('nxstart',_Field(_int,0,'i')), ('nystart',_Field(_int,0,'i')), ('nzstart',_Field(_int,0,'i')), # starting point of sub-image
    ('mx',_Field(_int,1,'i')), ('my',_Field(_int,1,'i')), ('mz',_Field(_int,1,'i')),        # grid size in X, Y, and Z
    ('cella',_Field(_float,0.0,'f')), ('cellb',_Field(_float,0.0,'f')), ('cellc',_Field(_float,0.0,'f')), # cell size in angstroms
    ('cellalpha',_Field(_float,90.0,'f')), ('cellbeta',_Field(_float,90.0,'f')), ('cellgamma',_Field(_float,90.0,'f')), # cell angles in degrees
    ('mapc',_Field(_float,1.0,'f')), ('mapr',_Field(_float,2.0,'f')), ('maps',_Field(_float,3.0,'f')), # axis for columns/rows/sections
    ('dmin',_Field(_float,0.0,'f')), ('dmax',_Field(_float,0.0,'f')), ('dmean',_Field(_float,0.0,'f')), # min/max/mean density
    ('ispg',_Field(_int,0,'i')),                                                            # space group (0 images, 1 volume, 401+ volume stack)
    ('nsymbt',_Field(_int,0,'i')),                                                          # number of bytes in the extended header
    ('extra_space1',_Field(_ints(2),(0,)*2,'i',2)),
    ('exttype',_Field(_exttype,'    ','4s')),                                               # extended header type
    ('nversion',_Field(_int,0,'i')),                                                        # year*10 + version within the year
    ('extra_space2',_Field(_ints(21),(0,)*21,'i',21)),
    ('origin_x',_Field(_float,0.0,'f')), ('origin_y',_Field(_float,0.0,'f')), ('origin_z',_Field(_float,0.0,'f')),
    ('map',_Field(_tag,MAP_,'4s')), ('machst',_Field(_tag,STAMP_LITTLE,'4s')),               # 'MAP ' and the machine stamp
    ('rms',_Field(_float,0.0,'f')),                                                         # RMS deviation of densities from mean density
    ('nlabl',_Field(_int,0,'i')),                                                           # number of meaningful labels
    ('label',_Field(_text,' '*(LBL_LEN*LBL_COUNT),'%ds'%(LBL_LEN*LBL_COUNT))),              # 10 80-character labels
    ('exthead',_Field(_exthead,b'',None)),                                                  # extended header, not part of the fixed header
    ])

HEADER_FORMAT = ''.join((str(f.count) if f.count > 1 else '') + f.fmt for f in FIELDS.values() if f.fmt is not None) # needs endian byte before using

_DIM = 'dim'


def dimension_class(ispg, mz):
    """
    Classify the data described by a header:
        0   a single 2D image
        1   a stack of 2D images
        2   a single 3D volume
        3   a stack of 3D volumes
    When the values match none of these an MRCWarning is issued and None is returned.
    """
    if ispg == 0:
        if mz == 1: return 0
        if mz > 1: return 1
    elif ispg == 1: return 2
    elif ispg > 400: return 3
    warn('Unknown dimensional specification (ISPG = %d, MZ = %d)' % (ispg, mz), MRCWarning, 2)
    return None

_ext_formats = {
    'CCP4': 'CCP4 Format',
    'MRCO': 'Original MRCO Format',
    'SERI': 'SerialEM Format',
    'AGAR': 'Agard Format',
    'FEI1': 'FEI Format',
}

def extension_format(exttype):
    """
    Get the name of the program or format that created the extended header from its EXTTYPE tag.
    Unknown tags issue an MRCWarning and return None.
    """
    if isinstance(exttype, bytes): exttype = exttype.decode('latin-1')
    name = _ext_formats.get(exttype)
    if name is None: warn('Unknown format origin %r' % (exttype,), MRCWarning, 2)
    return name


class MRCHeader(Mapping):
    """
    The MRC header as a record with a fixed set of fields. Fields are available as attributes
    using their lowercase names (h.nx, h.cella, h.exthead) or as a mapping using either the lower
    or upper case names (h['NX']). Values are cast to their on-disk type when set. The derived
    DIM value is available as h.dim or h['DIM'] and cannot be set.
    """
    __slots__ = ('_data',)

    def __init__(self, **fields):
        object.__setattr__(self, '_data', OrderedDict((name, f.cast(f.default)) for name, f in FIELDS.items()))
        for name, value in fields.items(): setattr(self, name, value)

    def __getattr__(self, name):
        if name == '_data': raise AttributeError(name)
        try: return self._data[name]
        except KeyError: raise AttributeError("MRC header has no field '%s'" % name)
    def __setattr__(self, name, value):
        if name == _DIM: raise AttributeError('DIM is derived from ISPG and MZ and cannot be set')
        if isinstance(getattr(type(self), name, None), property): return object.__setattr__(self, name, value)
        f = FIELDS.get(name)
        if f is None: raise AttributeError("MRC header has no field '%s'" % name)
        self._data[name] = f.cast(value)

    # Mapping interface
    def __getitem__(self, key):
        if not isinstance(key, str): raise KeyError(key)
        name = key.lower()
        if name == _DIM: return self.dim
        if name not in FIELDS: raise KeyError(key)
        return self._data[name]
    def __setitem__(self, key, value):
        if key not in self: raise KeyError(key)
        setattr(self, key.lower(), value)
    def __iter__(self): return iter(self._data)
    def __len__(self): return len(self._data)
    def __contains__(self, key): return isinstance(key, str) and (key.lower() in FIELDS or key.lower() == _DIM)

    def __eq__(self, other):
        if not isinstance(other, MRCHeader): return NotImplemented
        return all(_same(self._data[name], other._data[name]) for name in FIELDS)
    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq
    __hash__ = None

    def __repr__(self):
        return 'MRCHeader(%s)' % ', '.join('%s=%r' % (k, v) for k, v in self._data.items() if k not in ('label', 'exthead'))

    def copy(self):
        h = MRCHeader()
        h._data.update((name, value.copy() if isinstance(value, ndarray) else value) for name, value in self._data.items())
        return h

    @property
    def dim(self):
        """The dimensional description (see dimension_class), None if it cannot be determined."""
        return dimension_class(self._data['ispg'], self._data['mz'])

    @property
    def format_origin(self):
        """The name of the format of the extended header (see extension_format)."""
        return extension_format(self._data['exttype'])

    @property
    def exthead_bytes(self):
        """The extended header as bytes"""
        ext = self._data['exthead']
        return ext.tobytes() if isinstance(ext, ndarray) else ext

    @property
    def pixel_spacing(self):
        """Gets the pixel spacing of the data"""
        d = self._data
        return (d['cella']/d['mx'], d['cellb']/d['my'], d['cellc']/d['mz'])
    @pixel_spacing.setter
    def pixel_spacing(self, value):
        """Sets the pixel spacing by changing the cell size."""
        if len(value) != 3: raise ValueError('pixel spacing requires 3 values')
        d = self._data
        d['cella'] = float32(float32(value[0])*d['mx'])
        d['cellb'] = float32(float32(value[1])*d['my'])
        d['cellc'] = float32(float32(value[2])*d['mz'])

    @property
    def labels(self):
        """The labels in use (the first NLABL 80-character slots) with trailing padding removed."""
        text, n = self._data['label'], max(0, min(int(self._data['nlabl']), LBL_COUNT))
        return [text[i*LBL_LEN:(i+1)*LBL_LEN].rstrip(' \0') for i in range(n)]
    @labels.setter
    def labels(self, lbls):
        lbls = [str(l) for l in lbls]
        if len(lbls) > LBL_COUNT: raise ValueError('lbls is too long (max label count is %d)' % LBL_COUNT)
        if any(len(l) > LBL_LEN for l in lbls): raise ValueError('lbls contains label that is too long (max label length is %d)' % LBL_LEN)
        for l in lbls: _check_latin1(l)
        self._data['label'] = ''.join(l.ljust(LBL_LEN) for l in lbls).ljust(LBL_LEN*LBL_COUNT)
        self._data['nlabl'] = int32(len(lbls))

def _as_bytes(value): return value.tobytes() if isinstance(value, ndarray) else value
def _same(a, b): return _as_bytes(a) == _as_bytes(b)

def default_header(byteorder=None):
    """
    Create a header with the default values: 1x1x1 mode 0 data, 90 degree cell angles, blank
    labels, no extended header and the MAP tag and machine stamp of the given byte order
    (defaults to the host byte order).
    """
    map_, stamp = map_tags(byteorder)
    return MRCHeader(map=map_, machst=stamp)

def header_from_values(values, exthead=b''):
    """
    Create a header from the flat sequence of values unpacked with HEADER_FORMAT. Fields stored in
    several words (the reserved space) are regrouped.
    """
    h, i = MRCHeader(), 0
    for name, f in FIELDS.items():
        if f.fmt is None: continue
        value = values[i] if f.count == 1 else values[i:i+f.count]
        i += f.count
        setattr(h, name, value)
    h.exthead = exthead
    return h
