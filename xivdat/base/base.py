# Licensed under the GPLv3 - see LICENSE
"""Common classes for accessing DAT content as binary files.

The main `~xivdat.base.base.FileBase` class provides a base to which format
specific methods such as ``read`` and ``write`` on the content can be added.
Unlike normal binary file readers, the base can be pickled: it stores the
name and re-opens the file if unpickled.

The `~xivdat.base.base.FileOpener` class helps create the ``open``
function that is expected to exist for each format.

Also defined here are the errors raised for files that cannot be
interpreted.
"""
import io
import functools
import textwrap
from contextlib import contextmanager


__all__ = ['DATError', 'NotADATFileError', 'InvalidMagicError',
           'UnsupportedTypeError', 'TruncatedError',
           'SectionError', 'TruncatedSectionError', 'InvalidTagError',
           'MissingTerminatorError',
           'FileBase', 'FileOpener']


class DATError(Exception):
    """Base class for errors in interpreting DAT files."""
    pass


class NotADATFileError(DATError, ValueError):
    """Header data are inconsistent; the file is not a binary DAT file.

    It may be one of the plaintext DAT files instead.
    """
    pass


class InvalidMagicError(NotADATFileError):
    """The format marker bytes in the header are not as expected."""
    pass


class UnsupportedTypeError(NotADATFileError):
    """The header carries a file type code that is not recognized."""
    pass


class TruncatedError(DATError, EOFError):
    """Data ended before a complete header or content block was read."""
    pass


class SectionError(DATError, ValueError):
    """Error in decoding or encoding a section record."""
    pass


class TruncatedSectionError(SectionError):
    """A section declares more payload than the data hold."""
    pass


class InvalidTagError(SectionError):
    """A section tag is not a single valid Unicode scalar."""
    pass


class MissingTerminatorError(SectionError):
    """A section payload does not end with a null byte."""
    pass


class FileBase:
    """Wrapper around a raw binary file.

    The wrapped file is available as ``fh_raw``; public attributes not
    defined on the wrapper, such as ``name`` or ``closed``, come from it.

    Parameters
    ----------
    fh_raw : filehandle
        Raw binary filehandle.

    Notes
    -----
    A subclass should define ``read``, ``write``, ``seek`` and ``tell``
    methods that act on the logical content, and also set an ``info``
    property.
    """
    fh_raw = None

    def __init__(self, fh_raw):
        self.fh_raw = fh_raw

    def __getattr__(self, attr):
        """Get public attributes missing on self from the raw file."""
        if not attr.startswith('_'):
            try:
                return getattr(self.fh_raw, attr)
            except AttributeError:
                pass
        # Raise the usual AttributeError.
        return self.__getattribute__(attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.fh_raw.close()

    @contextmanager
    def temporary_offset(self, offset=None, whence=0):
        """Seek elsewhere, returning to the current position afterwards.

        Use as ``with fh.temporary_offset(0) as fh: ...``.  The optional
        ``offset`` and ``whence`` are passed on to ``seek`` on entry.
        """
        oldpos = self.tell()
        try:
            if offset is not None:
                self.seek(offset, whence)
            yield self
        finally:
            self.seek(oldpos)

    def __repr__(self):
        return "{0}(fh_raw={1})".format(self.__class__.__name__, self.fh_raw)

    def __getstate__(self):
        if self.writable():
            raise TypeError('cannot pickle file opened for writing')

        state = self.__dict__.copy()
        # Regular files are reopened on unpickling; other handles are
        # expected to pickle themselves.
        if isinstance(self.fh_raw, io.IOBase):
            fh = state.pop('fh_raw')
            state['fh_info'] = {
                'offset': 'closed' if fh.closed else fh.tell(),
                'filename': fh.name,
                'mode': fh.mode}

        return state

    def __setstate__(self, state):
        fh_info = state.pop('fh_info', None)
        if fh_info is not None:
            fh = io.open(fh_info['filename'], fh_info['mode'])
            if fh_info['offset'] != 'closed':
                fh.seek(fh_info['offset'])
            else:
                fh.close()
            state['fh_raw'] = fh

        self.__dict__.update(state)


class FileOpener:
    """File opener for a DAT-like format.

    Each instance can be used as a function to open a file.  It is probably
    best used inside a wrapper, so that the documentation can reflect the
    docstring of ``__call__`` rather than of this class.

    Parameters
    ----------
    fmt : str
        Name of the format.
    file_class : class
        Used to wrap the opened binary file.  It is initialized with the
        filehandle, and for new files with a ``header`` keyword argument.
    header_class : `~xivdat.base.header.StructHeaderBase` subclass
        Used to instantiate a header from keywords as needed.
    """

    modes = {'r': 'rb', 'r+': 'r+b', 'w': 'w+b', 'w+': 'w+b',
             'x': 'x+b', 'x+': 'x+b'}
    """Accepted modes (without 'b') and the binary modes used for them."""

    def __init__(self, fmt, file_class, header_class):
        self.fmt = fmt
        self.file_class = file_class
        self.header_class = header_class

    def normalize_mode(self, mode):
        """Convert ``mode`` to one of the binary modes in ``modes``."""
        key = mode.replace('b', '', 1)
        if key not in self.modes:
            key = key[::-1]
        if 't' in mode or key not in self.modes:
            raise ValueError(f'invalid mode: {mode} '
                             f'({self.fmt} supports {set(self.modes)}).')

        return self.modes[key]

    def is_fh(self, name):
        """Whether name is a filehandle."""
        return hasattr(name, 'read') or hasattr(name, 'write')

    def get_header(self, kwargs):
        """Get header from kwargs or construct it from kwargs.

        All keyword arguments will be popped from kwargs.
        """
        header = kwargs.pop('header', None)
        if header is None:
            tried = {key: kwargs.pop(key) for key in list(kwargs)}
            header = self.header_class.fromvalues(**tried)
        elif kwargs:
            raise TypeError('cannot pass in both a header and keywords {0}.'
                            .format(set(kwargs)))

        return header

    def get_fh(self, name, mode):
        """Ensure name is a filehandle, opening it if necessary."""
        if self.is_fh(name):
            return name

        return io.open(name, mode=mode)

    def __call__(self, name, mode='rb', **kwargs):
        """
        Open DAT file for reading or writing.

        Opened in binary mode, one gets a wrapped filehandle whose ``read``,
        ``write`` and ``seek`` act on the content of the file, with the
        header, footer and content mask handled automatically.

        Parameters
        ----------
        name : str, path-like, or filehandle
            File name or filehandle.
        mode : {'rb', 'r+b', 'wb', 'xb'}, optional
            Whether to open for reading, for reading and writing, or to
            create a new file (overwriting an existing one for 'wb', failing
            if it exists for 'xb'). Default: 'rb'.
        **kwargs
            For creating a file, the header to use (``header``), or the
            values from which to construct it (e.g., ``file_type``).
        """
        mode = self.normalize_mode(mode)
        if mode[0] in 'wx':
            # Creating a file always needs a header.  Construct from
            # other keywords if necessary.
            kwargs['header'] = self.get_header(kwargs)

        fh = self.get_fh(name, mode)
        try:
            return self.file_class(fh, **kwargs)
        except Exception:
            if fh is not name:
                fh.close()
            raise

    def wrapped(self, module=None, doc=None):
        """Return a plain ``open`` function calling this opener."""

        @functools.wraps(self.__call__)
        def open(*args, **kwargs):
            return self(*args, **kwargs)

        if doc:
            open.__doc__ = doc

        if module:
            open.__module__ = module

        return open

    @classmethod
    def create(cls, ns, doc=None):
        """Create a standard opener for the given namespace.

        This assumes that the namespace contains a file class and a header
        class with standard names, ``<fmt>File`` and ``<fmt>Header``,
        where ``fmt`` is the name of the format (which is inferred by looking
        for a ``*Header`` entry).

        Parameters
        ----------
        ns : dict
            Namespace to look in.  Generally, pass in ``globals()`` at the
            call site.
        doc : str, optional
            Extra documentation to add to that of the opener's ``__call__``
            method.
        """
        module = ns.get('__name__', None)
        for key in ns:
            fmt = key.replace('Header', '')
            if key.endswith('Header') and fmt + 'File' in ns:
                break
        else:  # noqa
            raise ValueError('namespace does not contain a Header and File '
                             'class, so fmt cannot be guessed.')

        opener = cls(fmt, ns[fmt + 'File'], ns[fmt + 'Header'])
        if doc is not None:
            doc = textwrap.dedent(opener.__call__.__doc__) + doc
            doc = doc.replace('Open DAT file', f'Open {fmt} file')
        return opener.wrapped(module=module, doc=doc)
