# Licensed under the GPLv3 - see LICENSE
"""
Definitions for DAT file headers.

Implements a DATHeader class used to store the header fields, and
decode/encode the information therein.

A binary DAT file consists of a 17-byte header, a content region of
``max_size`` bytes, and a 15-byte null footer.  The header holds, as
little-endian unsigned integers:

======  ============  ==================================================
offset  key           meaning
======  ============  ==================================================
0       file_type     type code; bytes 1 and 3 are always zero
4       max_size      size of the content region
8       content_size  number of valid content bytes plus one terminator
12      reserved      unknown; kept as is
16      end_byte      single byte, fixed per type; kept as is
======  ============  ==================================================
"""
import struct

from ..base.header import HeaderParser, StructHeaderBase
from ..base.base import (NotADATFileError, InvalidMagicError,
                         UnsupportedTypeError, TruncatedError)
from .types import DATType, TYPE_PARAMETERS
from .mask import XORMask


__all__ = ['HEADER_NBYTES', 'FOOTER_NBYTES', 'TYPE_MARKER_MASK',
           'MAX_SIZE_LIMIT', 'DATHeader', 'decode_header', 'encode_header']


TYPE_MARKER_MASK = 0xFF00FF00
"""Bits of the file type code that are zero for all binary DAT files."""

FOOTER_NBYTES = 15
"""Number of null bytes following the content region."""

MAX_SIZE_LIMIT = 0xFFFFFFFF
"""Largest content region (and content size) the header can describe."""


class DATHeader(StructHeaderBase):
    """Decoder/encoder of a DAT file header.

    Parameters
    ----------
    words : tuple of int, or None
        Header fields, as unpacked from the 17 header bytes (four 32-bit
        unsigned int and one byte).  If `None`, set to a list of zeros for
        later initialisation.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.

    Returns
    -------
    header : `DATHeader`
    """

    _header_parser = HeaderParser(
        (('file_type', (0, 0, 32)),
         ('max_size', (1, 0, 32)),
         ('content_size', (2, 0, 32, 1)),
         ('reserved', (3, 0, 32, 0)),
         ('end_byte', (4, 0, 8))))

    _struct = struct.Struct('<4IB')

    _properties = ('dat_type', 'content_nbytes')
    """Properties accessible/usable in initialisation."""

    def verify(self):
        """Verify header integrity.

        Raises
        ------
        InvalidMagicError
            If the format marker bits of the type code are not zero.
        UnsupportedTypeError
            If the type code is not a known one.
        NotADATFileError
            If the content size is zero or larger than the maximum size.
        """
        super().verify()
        file_type = self['file_type']
        if file_type & TYPE_MARKER_MASK:
            raise InvalidMagicError("file type code {0:#010x} does not have "
                                    "the format marker of a binary DAT file."
                                    .format(file_type))
        try:
            DATType(file_type)
        except ValueError:
            raise UnsupportedTypeError("file type code {0:#010x} is not "
                                       "supported.".format(file_type)
                                       ) from None
        if self['content_size'] == 0:
            raise NotADATFileError("content size should include the "
                                   "terminating null byte.")
        if self['content_size'] > self['max_size']:
            raise NotADATFileError("content size {0} exceeds maximum size "
                                   "{1} in header."
                                   .format(self['content_size'],
                                           self['max_size']))

    @classmethod
    def fromvalues(cls, **kwargs):
        """Initialise a header from parsed values.

        Here, the parsed values must be given as keyword arguments, i.e., for
        any ``header = cls(<data>)``, ``cls.fromvalues(**header) == header``.

        The file type can be given as ``file_type`` or ``dat_type``, and
        the logical content length as ``content_nbytes`` instead of
        ``content_size``.

        Given defaults:

        content_size : 1 (no content, just the terminator)
        reserved : 0

        Values set from the file type (if not given):

        max_size : standard size for the type (at least ``content_size``)
        end_byte : standard value for the type (or 0)
        """
        dat_type = kwargs.pop('dat_type', None)
        if dat_type is None:
            dat_type = kwargs.pop('file_type', None)
            if dat_type is None:
                raise TypeError("need a file type to create a header.")

        try:
            dat_type = DATType(dat_type)
        except ValueError:
            raise UnsupportedTypeError(f"file type {dat_type!r} is not "
                                       "supported.") from None

        parameters = TYPE_PARAMETERS[dat_type]
        kwargs['file_type'] = int(dat_type)
        if 'content_nbytes' in kwargs:
            content_size = kwargs['content_nbytes'] + 1
        else:
            content_size = kwargs.setdefault('content_size', 1)
        if kwargs.get('end_byte') is None:
            kwargs['end_byte'] = parameters.end_byte or 0
        if kwargs.get('max_size') is None:
            kwargs['max_size'] = max(parameters.max_size or 0, content_size)
        verify = kwargs.pop('verify', True)
        self = super().fromvalues(verify=False, **kwargs)
        if verify:
            self.verify()
        return self

    @classmethod
    def frombytes(cls, data, *args, **kwargs):
        """Decode a header from the first 17 bytes of ``data``.

        Raises
        ------
        TruncatedError
            If ``data`` is shorter than a header.
        """
        try:
            return super().frombytes(data, *args, **kwargs)
        except EOFError as exc:
            raise TruncatedError(str(exc)) from None

    @classmethod
    def fromfile(cls, fh, *args, **kwargs):
        """Read DAT header from file.

        Arguments are the same as for class initialisation.  The header
        constructed will be immutable.

        Raises
        ------
        TruncatedError
            If the file ends before a complete header was read.
        """
        try:
            return super().fromfile(fh, *args, **kwargs)
        except EOFError:
            raise TruncatedError("file too short to contain a DAT header."
                                 ) from None

    @property
    def dat_type(self):
        """File type, as a `~xivdat.dat.types.DATType`."""
        return DATType(self['file_type'])

    @dat_type.setter
    def dat_type(self, dat_type):
        self['file_type'] = int(DATType(dat_type))

    @property
    def parameters(self):
        """Structural parameters of the file type."""
        return TYPE_PARAMETERS[self.dat_type]

    @property
    def mask(self):
        """Mask applied to the content."""
        return XORMask.fromheader(self)

    @property
    def content_nbytes(self):
        """Number of valid content bytes (excluding the terminator)."""
        return self['content_size'] - 1

    @content_nbytes.setter
    def content_nbytes(self, content_nbytes):
        if content_nbytes < 0:
            raise ValueError("content length cannot be negative.")
        self['content_size'] = content_nbytes + 1

    @property
    def padding_nbytes(self):
        """Number of bytes between the terminator and the end of the file."""
        return self['max_size'] - self['content_size'] + FOOTER_NBYTES

    @property
    def file_nbytes(self):
        """Size of the whole file in bytes."""
        return self.nbytes + self['max_size'] + FOOTER_NBYTES

    def _repr_value(self, key, value):
        if key in ('file_type', 'end_byte'):
            value = hex(value)
        return super()._repr_value(key, value)


HEADER_NBYTES = DATHeader.nbytes
"""Size of a DAT header in bytes."""


def decode_header(data):
    """Decode the header at the start of ``data``.

    Raises
    ------
    TruncatedError
        If fewer than `HEADER_NBYTES` bytes are given.
    InvalidMagicError, UnsupportedTypeError, NotADATFileError
        If the header is not consistent with a binary DAT file.
    """
    return DATHeader.frombytes(data)


def encode_header(header):
    """Encode a header into exactly `HEADER_NBYTES` bytes."""
    return header.tobytes()
