# Licensed under the GPLv3 - see LICENSE
"""
Decoding and encoding of section records.

The content of some DAT file types (e.g., macros and keybinds) is a
sequence of sections, each consisting of:

========  ==============================================================
field     meaning
========  ==============================================================
tag       a single character, UTF-8 encoded (typically ASCII)
length    little-endian unsigned integer, the size of the payload
payload   UTF-8 text, including a terminating null byte
========  ==============================================================

The width of the length field differs between revisions of the format;
it is set by the ``length_nbytes`` argument of `SectionCodec`, which
defaults to `DEFAULT_LENGTH_NBYTES`.
"""
import struct
import warnings
from collections import namedtuple

from ..base.base import (TruncatedSectionError, InvalidTagError,
                         MissingTerminatorError)
from ..dat.base import open as dat_open, write_content


__all__ = ['DEFAULT_LENGTH_NBYTES', 'Section', 'SectionCodec',
           'SectionSequence', 'decode_all', 'encode_all',
           'read_sections', 'write_sections']


DEFAULT_LENGTH_NBYTES = 2
"""Default width in bytes of the section length field."""


class Section(namedtuple('Section', ('tag', 'content'))):
    """A tagged piece of text from a section-based DAT file.

    Parameters
    ----------
    tag : str
        Single character identifying the meaning of the content.
    content : str
        The text, without the terminating null byte.
    """
    __slots__ = ()

    @property
    def content_size(self):
        """Size of the encoded payload, including the null terminator."""
        return len(self.content.encode('utf-8')) + 1

    def tobytes(self, length_nbytes=DEFAULT_LENGTH_NBYTES):
        """Encode the section."""
        return SectionCodec(length_nbytes).encode(self)


def _utf8_nbytes(lead):
    # Number of bytes in a UTF-8 sequence starting with the given byte.
    if lead < 0x80:
        return 1
    elif 0xC2 <= lead < 0xE0:
        return 2
    elif 0xE0 <= lead < 0xF0:
        return 3
    elif 0xF0 <= lead < 0xF5:
        return 4
    else:
        return None


class SectionCodec:
    """Decoder/encoder of section records.

    Parameters
    ----------
    length_nbytes : {1, 2, 4}, optional
        Width of the length field.  Default: `DEFAULT_LENGTH_NBYTES`.
    """

    _formats = {1: '<B', 2: '<H', 4: '<I'}

    def __init__(self, length_nbytes=DEFAULT_LENGTH_NBYTES):
        if length_nbytes not in self._formats:
            raise ValueError("length field should have a width of {0} bytes."
                             .format(' or '.join(str(n) for n
                                                 in self._formats)))
        self.length_nbytes = length_nbytes
        self._struct = struct.Struct(self._formats[length_nbytes])

    @property
    def max_content_size(self):
        """Largest payload (including terminator) that can be encoded."""
        return (1 << (8 * self.length_nbytes)) - 1

    def decode(self, data, offset=0):
        """Decode the section starting at ``offset``.

        Parameters
        ----------
        data : bytes-like
            Encoded sections.
        offset : int, optional
            Position of the start of the section in ``data``.

        Returns
        -------
        section : `Section`
        next_offset : int
            Position just after the section.

        Raises
        ------
        InvalidTagError
            If the tag is not a single valid UTF-8 encoded character.
        TruncatedSectionError
            If the data end before the length field or payload does.
        MissingTerminatorError
            If the payload does not end with a null byte.
        UnicodeDecodeError
            If the payload is not valid UTF-8.
        """
        data = memoryview(data).cast('B')
        tag_nbytes = _utf8_nbytes(data[offset])
        tag_bytes = bytes(data[offset:offset+(tag_nbytes or 1)])
        if tag_nbytes is None or len(tag_bytes) < tag_nbytes:
            raise InvalidTagError("section at offset {0} does not start with "
                                  "a valid tag ({1!r})."
                                  .format(offset, tag_bytes))
        try:
            tag = tag_bytes.decode('utf-8')
        except UnicodeDecodeError:
            raise InvalidTagError("section at offset {0} does not start with "
                                  "a valid tag ({1!r})."
                                  .format(offset, tag_bytes)) from None

        start = offset + tag_nbytes + self.length_nbytes
        if start > len(data):
            raise TruncatedSectionError("data end in the length field of the "
                                        "section at offset {0}."
                                        .format(offset))
        content_size = self._struct.unpack_from(data, offset + tag_nbytes)[0]
        stop = start + content_size
        if stop > len(data):
            raise TruncatedSectionError("section at offset {0} claims {1} "
                                        "bytes, but only {2} remain."
                                        .format(offset, content_size,
                                                len(data) - start))
        if content_size == 0 or data[stop-1] != 0:
            raise MissingTerminatorError("payload of section at offset {0} "
                                         "is not null terminated."
                                         .format(offset))

        content = bytes(data[start:stop-1]).decode('utf-8')
        return Section(tag, content), stop

    def encode(self, section):
        """Encode a single section, with its length calculated from content.

        Raises
        ------
        InvalidTagError
            If the tag is not a single, non-null character.
        ValueError
            If the content is too long for the length field.
        """
        tag, content = section
        if not isinstance(tag, str) or len(tag) != 1 or tag == '\0':
            raise InvalidTagError("section tag should be a single non-null "
                                  "character, got {0!r}.".format(tag))
        try:
            tag_bytes = tag.encode('utf-8')
        except UnicodeEncodeError:
            raise InvalidTagError("section tag {0!r} cannot be encoded."
                                  .format(tag)) from None

        payload = content.encode('utf-8') + b'\0'
        if len(payload) > self.max_content_size:
            raise ValueError("section content of {0} bytes is too long for a "
                             "{1}-byte length field."
                             .format(len(payload), self.length_nbytes))

        return tag_bytes + self._struct.pack(len(payload)) + payload

    def decode_all(self, data):
        """Decode a sequence of sections.

        Decoding happens lazily, while iterating over the result.  It
        stops at the end of the data or at a null byte where a tag would
        start (i.e., at padding).

        Returns
        -------
        sections : `SectionSequence`
        """
        return SectionSequence(data, self)

    def encode_all(self, sections):
        """Encode sections, in order, into a single bytes string."""
        return b''.join(self.encode(section) for section in sections)

    def __repr__(self):
        return "{0}(length_nbytes={1})".format(self.__class__.__name__,
                                               self.length_nbytes)


class SectionSequence:
    """Lazily decoded sequence of sections.

    Each iteration decodes the data again from the start, so the sequence
    can be iterated over multiple times.  A malformed section raises an
    exception at the point it is reached.

    Parameters
    ----------
    data : bytes-like
        Encoded sections.  A copy is made.
    codec : `SectionCodec`, optional
        Codec used for decoding.  Default: one with the default length field.
    """

    def __init__(self, data, codec=None):
        self.data = bytes(data)
        self.codec = SectionCodec() if codec is None else codec

    def __iter__(self):
        offset = 0
        while offset < len(self.data) and self.data[offset] != 0:
            section, offset = self.codec.decode(self.data, offset)
            yield section

    def __len__(self):
        return sum(1 for _ in self)

    def __repr__(self):
        return "<{0} of {1} bytes, {2}>".format(
            self.__class__.__name__, len(self.data), self.codec)


def decode_all(data, length_nbytes=DEFAULT_LENGTH_NBYTES):
    """Decode a sequence of sections.  See `SectionCodec.decode_all`."""
    return SectionCodec(length_nbytes).decode_all(data)


def encode_all(sections, length_nbytes=DEFAULT_LENGTH_NBYTES):
    """Encode sections.  See `SectionCodec.encode_all`."""
    return SectionCodec(length_nbytes).encode_all(sections)


def read_sections(name, length_nbytes=DEFAULT_LENGTH_NBYTES):
    """Read all sections from a DAT file.

    Parameters
    ----------
    name : str, path-like, or filehandle
        File to read.
    length_nbytes : {1, 2, 4}, optional
        Width of the length field.

    Returns
    -------
    sections : list of `Section`
    """
    with dat_open(name, 'rb') as fh:
        if not fh.section_based:
            warnings.warn("{0} files are not known to contain sections."
                          .format(fh.file_type.name))
        content = fh.read()

    return list(decode_all(content, length_nbytes))


def write_sections(name, sections, length_nbytes=DEFAULT_LENGTH_NBYTES):
    """Replace the content of a DAT file with the given sections.

    Returns
    -------
    count : int
        Number of content bytes written.
    """
    return write_content(name, encode_all(sections, length_nbytes))
