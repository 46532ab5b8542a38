# Load the most common functions directly
from .utils import sys_endian, get_byteorder, prod, unpack

from . import utils
