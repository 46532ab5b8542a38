"""An image read from or to be written to an MRC file: pixel data along with its header."""

__all__ = ['MRCImage']

class MRCImage(object):
    """
    Pixel data (a numpy array of shape (NX, NY) or (NX, NY, NZ)) bundled with its MRCHeader. It
    can be unpacked as a pair:

        data, header = pymrc.read('volume.mrc')
    """
    __slots__ = ('data', 'header', 'filename')

    def __init__(self, data, header, filename=None):
        self.data = data
        self.header = header
        self.filename = filename

    def __iter__(self): return iter((self.data, self.header))
    def __repr__(self): return 'MRCImage(shape=%r, dtype=%s, filename=%r)' % (self.shape, self.dtype, self.filename)

    @property
    def shape(self): return self.data.shape
    @property
    def dtype(self): return self.data.dtype
