# Licensed under the GPLv3 - see LICENSE
"""
Content masks for DAT files.

The content block of most DAT files is stored XOR'd with a key that depends
on the file type.  Since XOR is its own inverse, the same operation masks
data for writing and unmasks it on reading.  The key is repeated along the
content, starting at content offset 0, so any part of the content can be
masked or unmasked independently given its offset.
"""
import numpy as np

from ..base.utils import byte_array
from .types import get_mask_for_type


__all__ = ['XORMask', 'apply_mask']


class XORMask:
    """Reversible, position-dependent mask for DAT content.

    Once initialised, the instance can be used as a function that masks
    (or unmasks) a piece of content that starts at a given offset.

    Parameters
    ----------
    key : bytes or iterable of int
        Key that is repeated along the content.  An empty key leaves
        content unchanged.

    Examples
    --------
    >>> from xivdat.dat.mask import XORMask
    >>> mask = XORMask(b'\\x73')
    >>> mask(b'Macro!')
    b'>\\x12\\x10\\x01\\x1cR'
    >>> mask(mask(b'Macro!'))
    b'Macro!'
    """

    def __init__(self, key=b''):
        self.key = byte_array(key).copy()

    @classmethod
    def fortype(cls, dat_type):
        """Mask used for the content of a given file type."""
        return cls(get_mask_for_type(dat_type))

    @classmethod
    def fromheader(cls, header):
        """Mask for the file a header belongs to."""
        return cls.fortype(header.dat_type)

    def __len__(self):
        return self.key.size

    def __bool__(self):
        return self.key.size > 0

    def __eq__(self, other):
        return (type(self) is type(other)
                and np.array_equal(self.key, other.key))

    def key_stream(self, offset, count):
        """The key bytes applied to ``count`` bytes starting at ``offset``."""
        if offset < 0:
            raise ValueError('content offset cannot be negative.')
        if not self:
            return np.zeros(count, dtype='u1')
        return self.key[(np.arange(count) + offset) % self.key.size]

    def __call__(self, data, offset=0):
        """Mask or unmask data.

        Parameters
        ----------
        data : bytes-like or `~numpy.ndarray`
            Content bytes.
        offset : int, optional
            Offset in the content of the first byte of ``data``.

        Returns
        -------
        masked : bytes
        """
        data = byte_array(data)
        return (data ^ self.key_stream(offset, data.size)).tobytes()

    def zeros(self, count, offset=0):
        """Masked version of ``count`` null bytes starting at ``offset``."""
        return self.key_stream(offset, count).tobytes()

    def __repr__(self):
        return "{0}(key={1!r})".format(self.__class__.__name__,
                                       self.key.tobytes())


def apply_mask(data, key, offset=0):
    """Mask or unmask data with ``key``, starting at content ``offset``."""
    return XORMask(key)(data, offset)
