# Licensed under the GPLv3 - see LICENSE
"""Standardized information on DAT file handles."""
import io
import os

from astropy.time import Time

from ..base.file_info import info_item, InfoBase


__all__ = ['DATFileReaderInfo']


class DATFileReaderInfo(InfoBase):
    """Standardized information on DAT file handles.

    The ``info`` descriptor has a number of standard attributes, which are
    determined from the header and from checking the file size and content
    against it.

    Examples
    --------
    The most common use is simply to print information::

        >>> from xivdat.data import SAMPLE_MACRO
        >>> from xivdat import dat
        >>> fh = dat.open(SAMPLE_MACRO, 'rb')
        >>> fh.info  # doctest: +SKIP
        DATFile information:
        format = dat
        file_type = MACRO
        content_nbytes = 6
        max_size = 8
        end_byte = 255
        mask = XORMask(key=b's')
        section_based = True
        mtime = 2024-03-01T12:00:00.000
        readable = False
        <BLANKLINE>
        checks:  consistent: True
                 decodable: False
        <BLANKLINE>
        errors:  decodable: TruncatedSectionError(...)
        >>> fh.close()
    """
    attr_names = ('format', 'file_type', 'content_nbytes', 'max_size',
                  'end_byte', 'mask', 'section_based', 'record_nbytes',
                  'number_of_records', 'mtime', 'readable',
                  'missing', 'checks', 'errors', 'warnings')
    """Attributes that the container provides."""

    header = info_item(needs='_parent', copy=True, doc=(
        'Header of the file.'))
    file_type = info_item('dat_type', needs='header', doc=(
        'Type of the file.'))
    content_nbytes = info_item(needs='header', doc=(
        'Number of valid content bytes.'))
    mask = info_item(needs='header', doc=(
        'Mask applied to the content on disk.'))

    @info_item(needs='header')
    def format(self):
        """The file format."""
        return 'dat'

    @info_item(needs='header')
    def max_size(self):
        """Size of the content region."""
        return self.header['max_size']

    @info_item(needs='header')
    def end_byte(self):
        """Last byte of the header."""
        end_byte = self.header['end_byte']
        standard = self.header.parameters.end_byte
        if standard is not None and end_byte != standard:
            self.warnings['end_byte'] = (
                f'end byte {end_byte:#04x} differs from the standard '
                f'{standard:#04x} for {self.header.dat_type.name}')
        return end_byte

    @info_item(needs='header')
    def section_based(self):
        """Whether the content is a sequence of sections."""
        return self.header.parameters.section_based

    @info_item(needs='header')
    def record_nbytes(self):
        """Size of a resource record, for block types."""
        return self.header.parameters.record_nbytes

    @info_item(needs='record_nbytes')
    def number_of_records(self):
        """Number of resource records in the content."""
        number_of_records, rest = divmod(self.content_nbytes,
                                         self.record_nbytes)
        if rest:
            self.warnings['number_of_records'] = (
                f'content contains non-integer number '
                f'({self.content_nbytes / self.record_nbytes}) of records')
            return None

        return number_of_records

    @info_item(needs='header', missing='file handle has no modification time')
    def mtime(self):
        """Time the file was last modified."""
        try:
            fileno = self._parent.fh_raw.fileno()
        except (AttributeError, io.UnsupportedOperation):
            return None

        return Time(os.fstat(fileno).st_mtime, format='unix')

    @info_item(needs='header', default=False)
    def consistent(self):
        """Whether the file size is consistent with the header."""
        fh_raw = self._parent.fh_raw
        offset = fh_raw.tell()
        try:
            file_size = fh_raw.seek(0, 2)
        finally:
            fh_raw.seek(offset)

        if file_size < self.header.nbytes + self.header.content_nbytes:
            raise EOFError('file too short to hold the content.')

        if file_size != self.header.file_nbytes:
            self.warnings['consistent'] = (
                f'file size {file_size} differs from the size '
                f'{self.header.file_nbytes} implied by the header')
        return True

    @info_item(needs='consistent', default=False)
    def decodable(self):
        """Whether the content could be read (and split into sections)."""
        from ..section.codec import decode_all

        with self._parent.temporary_offset(0) as fh:
            content = fh.read()
        if self.section_based:
            list(decode_all(content))
        return True

    @info_item(needs='header', default=False)
    def readable(self):
        """Whether the file is readable and decodable."""
        self.checks['consistent'] = self.consistent
        self.checks['decodable'] = self.decodable
        return all(bool(v) for v in self.checks.values())
