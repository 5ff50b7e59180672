# Licensed under the GPLv3 - see LICENSE
"""Random access to the content of binary DAT files.

The `~xivdat.dat.base.DATFile` class wraps a binary file handle such that
``read``, ``write`` and ``seek`` act on the logical content of the file.
The header is kept consistent with the content, the mask is applied and
removed transparently, and the footer is maintained.
"""
import io
import os
import operator
import warnings

from ..base.base import FileBase, FileOpener, TruncatedError
from ..base.file_info import NoInfo
from .header import DATHeader, FOOTER_NBYTES, MAX_SIZE_LIMIT
from .types import TYPE_PARAMETERS
from .file_info import DATFileReaderInfo


__all__ = ['DATFile', 'open', 'create', 'read_content', 'write_content',
           'check_type', 'file_info']


class DATFile(FileBase):
    """Wrap a binary file handle to give access to DAT content.

    The logical cursor is independent of the position of the underlying
    file handle.  Reading never returns bytes beyond the content length
    recorded in the header, while writing past it extends the content,
    and updates the header accordingly.

    Parameters
    ----------
    fh_raw : filehandle
        Handle of the raw binary file, opened such that it can be read
        (and written, for modifying the content).
    header : `~xivdat.dat.header.DATHeader`, optional
        If given, initialise a new file with this header: the header is
        written, followed by an empty (masked) content region and the
        footer.  Otherwise, the header is read from the file.

    Raises
    ------
    NotADATFileError
        If the header does not describe a binary DAT file.
    TruncatedError
        If the file is too short to hold the header and content.
    """

    info = DATFileReaderInfo()

    def __init__(self, fh_raw, header=None):
        super().__init__(fh_raw)
        self.offset = 0
        if header is None:
            self.fh_raw.seek(0)
            header = DATHeader.fromfile(self.fh_raw)
            file_size = self.fh_raw.seek(0, 2)
            if file_size < header.nbytes + header.content_nbytes:
                raise TruncatedError(
                    "file size of {0} bytes is too small for the {1} "
                    "content bytes claimed by the header."
                    .format(file_size, header.content_nbytes))

            end_byte = header.parameters.end_byte
            if end_byte is not None and header['end_byte'] != end_byte:
                warnings.warn("header end byte {0:#04x} differs from the "
                              "standard {1:#04x} for {2} files."
                              .format(header['end_byte'], end_byte,
                                      header.dat_type.name))

            if self.fh_raw.writable():
                header = header.copy()
            self.header = header
            self.mask = header.mask

        else:
            header.verify()
            self.header = header.copy()
            self.mask = header.mask
            self.fh_raw.seek(0)
            self.header.tofile(self.fh_raw)
            self.fh_raw.write(self.mask.zeros(self.max_size))
            self._write_footer()
            self.fh_raw.truncate()

    @property
    def file_type(self):
        """Type of the file."""
        return self.header.dat_type

    @property
    def content_nbytes(self):
        """Number of valid content bytes."""
        return self.header.content_nbytes

    @property
    def max_size(self):
        """Size of the content region."""
        return self.header['max_size']

    @property
    def section_based(self):
        """Whether the content is a sequence of sections."""
        return self.header.parameters.section_based

    @property
    def record_nbytes(self):
        """Size of resource records, for block types (`None` otherwise)."""
        return self.header.parameters.record_nbytes

    def _check_closed(self):
        if self.fh_raw.closed:
            raise ValueError('I/O operation on closed file.')

    def _check_writable(self):
        self._check_closed()
        if not self.fh_raw.writable():
            raise io.UnsupportedOperation('file not opened for writing.')

    def _write_header(self):
        self.fh_raw.seek(0)
        self.header.tofile(self.fh_raw)

    def _write_footer(self):
        self.fh_raw.seek(self.header.nbytes + self.max_size)
        self.fh_raw.write(bytes(FOOTER_NBYTES))

    def _fill(self, start, stop):
        # Write masked zeros over content positions start up to stop.
        self.fh_raw.seek(self.header.nbytes + start)
        self.fh_raw.write(self.mask.zeros(stop - start, start))

    def _check_size(self, size):
        if size > MAX_SIZE_LIMIT:
            raise ValueError("size of {0} bytes exceeds the maximum of {1} "
                             "that a DAT header can describe."
                             .format(size, MAX_SIZE_LIMIT))

    def _ensure_room(self, content_size):
        if content_size > self.max_size:
            warnings.warn("content of {0} bytes does not fit in the maximum "
                          "size of {1} bytes; increasing it.  Files larger "
                          "than the standard size may be rejected by the "
                          "client.".format(content_size - 1, self.max_size))
            self.set_max_size(content_size)

    def readinto(self, b):
        """Read content bytes into a pre-allocated, writable buffer.

        Reading starts at the current content position and stops at the
        content length recorded in the header.

        Parameters
        ----------
        b : bytes-like
            Buffer to read into.

        Returns
        -------
        count : int
            Number of bytes read, 0 at the end of the content.
        """
        self._check_closed()
        view = memoryview(b).cast('B')
        count = max(min(len(view), self.content_nbytes - self.offset), 0)
        if count == 0:
            return 0

        self.fh_raw.seek(self.header.nbytes + self.offset)
        data = self.fh_raw.read(count)
        if len(data) < count:
            raise TruncatedError('file ended before the content did.')

        view[:count] = self.mask(data, self.offset)
        self.offset += count
        return count

    def read(self, count=None):
        """Read content bytes.

        Parameters
        ----------
        count : int, optional
            Maximum number of bytes to read.  If not given or negative,
            read up to the end of the content.

        Returns
        -------
        data : bytes
            Unmasked content, empty if at or beyond the end of the content.
        """
        self._check_closed()
        remaining = max(self.content_nbytes - self.offset, 0)
        if count is None or count < 0 or count > remaining:
            count = remaining

        buffer = bytearray(count)
        count = self.readinto(buffer)
        return bytes(buffer[:count])

    def readall(self):
        """Read all content from the current position to the end."""
        return self.read()

    def write(self, data):
        """Write data to the content at the current position.

        If the current position is beyond the end of the content, the gap
        is filled with zeros first.  If the content is extended, the header
        is updated, and the maximum size is increased if needed (with a
        warning).  Overwriting existing content never changes its length.

        Parameters
        ----------
        data : bytes-like
            Unmasked data to write.

        Returns
        -------
        count : int
            Number of bytes written.
        """
        self._check_writable()
        data = memoryview(data).cast('B')
        count = len(data)
        if count == 0:
            return 0

        start = self.offset
        stop = start + count
        content_nbytes = self.content_nbytes
        self._check_size(stop + 1)
        self._ensure_room(stop + 1)
        if start > content_nbytes:
            self._fill(content_nbytes, start)

        self.fh_raw.seek(self.header.nbytes + start)
        self.fh_raw.write(self.mask(data, start))
        if stop > content_nbytes:
            # Masked terminator.
            self.fh_raw.write(self.mask.zeros(1, stop))
            self.header.content_nbytes = stop
            self._write_header()

        self.offset = stop
        return count

    def seek(self, offset, whence=0):
        """Change the position in the content.

        Seeking beyond the end of the content is allowed; the content is
        only extended by a subsequent write.

        Parameters
        ----------
        offset : int
            Offset to move to, in bytes.
        whence : {0, 1, 2, 'start', 'current', or 'end'}, optional
            Like regular seek, the offset is taken to be from the start if
            ``whence=0`` (default), from the current position if 1,
            and from the end of the content if 2.  One can alternatively use
            'start', 'current', or 'end' for 0, 1, or 2, respectively.

        Returns
        -------
        offset : int
            The new position.
        """
        self._check_closed()
        offset = operator.index(offset)
        if whence == 0 or whence == 'start':
            pass
        elif whence == 1 or whence == 'current':
            offset += self.offset
        elif whence == 2 or whence == 'end':
            offset += self.content_nbytes
        else:
            raise ValueError("invalid 'whence'; should be 0 or 'start', 1 or "
                             "'current', or 2 or 'end'.")

        if offset < 0:
            raise OSError('cannot seek to a negative offset.')

        self.offset = offset
        return self.offset

    def tell(self):
        """Current position in the content."""
        self._check_closed()
        return self.offset

    def truncate(self, size=None):
        """Change the content length.

        The freed part of the content is overwritten with zeros when
        shrinking, and the new part is zero-filled when growing.  The
        position in the content is not changed.

        Parameters
        ----------
        size : int, optional
            New content length.  Default: the current position.

        Returns
        -------
        size : int
            The new content length.
        """
        self._check_writable()
        size = self.offset if size is None else operator.index(size)
        if size < 0:
            raise ValueError('content length cannot be negative.')

        content_nbytes = self.content_nbytes
        self._check_size(size + 1)
        self._ensure_room(size + 1)
        self._fill(min(size, content_nbytes), max(size, content_nbytes) + 1)
        self.header.content_nbytes = size
        self._write_header()
        return size

    def set_max_size(self, max_size):
        """Change the size of the content region.

        Parameters
        ----------
        max_size : int
            New size.  Should be large enough to hold the content and its
            terminator.
        """
        self._check_writable()
        max_size = operator.index(max_size)
        if max_size < self.header['content_size']:
            raise ValueError("maximum size {0} is too small for the {1} "
                             "content bytes and terminator."
                             .format(max_size, self.content_nbytes))
        self._check_size(max_size)

        if max_size > self.max_size:
            self._fill(self.max_size, max_size)
        self.header['max_size'] = max_size
        self._write_footer()
        self.fh_raw.truncate()
        self._write_header()

    def flush(self):
        """Write header and footer, and flush the underlying file handle.

        Anything beyond the footer is removed.
        """
        self._check_closed()
        if self.fh_raw.writable():
            self._write_header()
            self._write_footer()
            self.fh_raw.truncate()
            self.fh_raw.flush()

    def sync(self):
        """Flush, and ensure everything is written to the storage device."""
        self.flush()
        os.fsync(self.fh_raw.fileno())

    def close(self):
        """Flush and close the file.  Has no effect if already closed."""
        if self.fh_raw.closed:
            return

        try:
            self.flush()
        finally:
            self.fh_raw.close()

    def __repr__(self):
        return ("{0}(fh_raw={1}, file_type={2}, content_nbytes={3})"
                .format(self.__class__.__name__, self.fh_raw,
                        self.file_type.name, self.content_nbytes))


open = FileOpener.create(globals(), doc="""
--- For opening an existing file: (see :class:`~xivdat.dat.base.DATFile`)

--- For creating a new file: (see :class:`~xivdat.dat.header.DATHeader`)

file_type : `~xivdat.dat.types.DATType` or int
    Type of the file.  Needed unless ``header`` is given.
max_size : int, optional
    Size of the content region.  Default: the standard size for the type.
**kwargs
    Further values for the header, such as ``end_byte``.

Returns
-------
Filehandle
    :class:`~xivdat.dat.base.DATFile` instance.
""")


def create(name, file_type, content=None, *, overwrite=True, **kwargs):
    """Create a new DAT file, possibly with initial content.

    Parameters
    ----------
    name : str or path-like
        Name of the file.
    file_type : `~xivdat.dat.types.DATType` or int
        Type of the file.
    content : bytes-like, optional
        Initial content.  By default, the content is empty.
    overwrite : bool, optional
        Whether to replace an existing file.  If `False`, raise
        `FileExistsError` instead.  Default: `True`.
    **kwargs
        Further values for the header, such as ``max_size``.

    Returns
    -------
    fh : `~xivdat.dat.base.DATFile`
        Opened for reading and writing, with its position at the start.
    """
    parameters = TYPE_PARAMETERS.get(file_type)
    if (content is not None and kwargs.get('max_size') is None
            and parameters is not None and parameters.max_size is None):
        # No standard size; make the content just fit.
        kwargs['max_size'] = len(memoryview(content).cast('B')) + 1

    fh = open(name, 'wb' if overwrite else 'xb', file_type=file_type,
              **kwargs)
    if content is not None:
        try:
            fh.write(content)
            fh.seek(0)
        except Exception:
            # Close without flushing.
            fh.fh_raw.close()
            raise

    return fh


def read_content(name):
    """Read all content of a DAT file.

    Parameters
    ----------
    name : str, path-like, or filehandle
        File to read.

    Returns
    -------
    content : bytes
        Unmasked content.
    """
    with open(name, 'rb') as fh:
        return fh.read()


def write_content(name, data):
    """Replace the content of an existing DAT file.

    Parameters
    ----------
    name : str, path-like, or filehandle
        File to write to.
    data : bytes-like
        New, unmasked content.

    Returns
    -------
    count : int
        Number of bytes written.
    """
    with open(name, 'r+b') as fh:
        fh.truncate(0)
        return fh.write(data)


def check_type(name):
    """Get the type of a DAT file from its header."""
    with open(name, 'rb') as fh:
        return fh.file_type


def file_info(name):
    """Get information about a DAT file.

    Parameters
    ----------
    name : str, path-like, or filehandle
        File for which to obtain information.

    Returns
    -------
    info : `~xivdat.dat.file_info.DATFileReaderInfo` or `~xivdat.base.file_info.NoInfo`
        Evaluates as `False` if the file could not be interpreted.
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            fh = open(name, 'rb')
    except Exception as exc:
        return NoInfo(f"{name} cannot be opened as a DAT file: {exc!r}.")

    with fh:
        return fh.info
