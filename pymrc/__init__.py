"""
Reading and writing MRC files, the image format used for electron microscopy and crystallography
maps. Pixel data is a numpy array indexed as im[x, y] or im[x, y, z].
"""
#pylint: disable=wildcard-import

from .errors import *
from .modes import *
from .header import MRCHeader, default_header, dimension_class, extension_format
from .image import MRCImage
from .io import *

from . import general
from . import io
