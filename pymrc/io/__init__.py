"""MRC file reading and writing. All images are numpy arrays in memory."""

__all__ = ['read_header', 'read_image', 'read', 'effective_slices', 'detect_byteorder',
           'image_stats', 'pad_extended_header', 'pack_header', 'prepare_header',
           'write_to', 'write', 'write_image', 'write_array']

from .reader import read_header, read_image, read, effective_slices, detect_byteorder
from .writer import (image_stats, pad_extended_header, pack_header, prepare_header,
                     write_to, write, write_image, write_array)
