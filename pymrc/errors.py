"""
Exceptions and warnings raised while reading and writing MRC files. Every fatal condition is an
MRCError and also a ValueError so code that only knows about ValueError still catches them.
"""

__all__ = ['MRCError', 'PreconditionError', 'FormatError', 'UnsupportedModeError',
           'UnknownModeError', 'TruncationError', 'RangeError', 'MRCWarning']

class MRCError(ValueError):
    """Base class of all fatal MRC reading and writing errors."""

class PreconditionError(MRCError):
    """
    The arguments given cannot be used: bad file extension, array shape that does not match the
    header, unknown format kind or an element type that has no MRC mode. Always raised before any
    file is created or modified.
    """

class FormatError(MRCError):
    """The header describes data that cannot be decoded."""

class UnsupportedModeError(FormatError):
    """The pixel mode is known but not supported (packed RGB, mode 16)."""
    def __init__(self, mode):
        super(UnsupportedModeError, self).__init__('Unsupported MRC mode %d: RGB data is not supported' % mode)
        self.mode = mode

class UnknownModeError(FormatError):
    """The pixel mode is not one defined by the MRC format."""
    def __init__(self, mode):
        super(UnknownModeError, self).__init__('Unknown MRC mode %d' % mode)
        self.mode = mode

class TruncationError(MRCError):
    """The file ends before the data the header declares."""

class RangeError(MRCError):
    """The requested slices are not present in the file."""

class MRCWarning(UserWarning):
    """Non-fatal problems found while classifying or checking an MRC header."""
