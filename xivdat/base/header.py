# Licensed under the GPLv3 - see LICENSE
"""
Base definitions for fixed-size binary headers.

A header is held as a sequence of "words", the fields of its binary
record.  Named keys give access to (parts of) those words through a
dict-like interface; the layout of the keys is described by a
`HeaderParser`, which turns each description into a parser, a setter and
a default.

Words, or parts of words, that no key describes are simply carried along,
so decoding and re-encoding a header never loses information.
"""
import struct
import warnings
import functools
from copy import copy

from .utils import fixedvalue


__all__ = ['make_parser', 'make_setter', 'get_default',
           'ParserDict', 'HeaderParserBase', 'HeaderParser',
           'ParsedHeaderBase', 'StructHeaderBase']


def make_parser(word_index, bit_index, bit_length, default=None):
    """Create a function that gets the value of a key from header words.

    Parameters
    ----------
    word_index : int
        Which word holds the value.
    bit_index : int
        Lowest bit of the value in the word.
    bit_length : int
        Number of bits of the value.  Single bits are returned as `bool`.
    default : int or bool or None
        Not used; allows passing in a full key description.

    Returns
    -------
    parser : function
        Called as ``parser(words)``.
    """
    if bit_length == 1:
        bit = 1 << bit_index

        def parser(words):
            return (words[word_index] & bit) != 0

        return parser

    if bit_index == 0 and bit_length == 32:
        def parser(words):
            return words[word_index]

        return parser

    bit_mask = (1 << bit_length) - 1

    def parser(words):
        return (words[word_index] >> bit_index) & bit_mask

    return parser


def make_setter(word_index, bit_index, bit_length, default=None):
    """Create a function that sets the value of a key in header words.

    Parameters
    ----------
    word_index, bit_index, bit_length : int
        Location of the value, as for `make_parser`.
    default : int or bool or None
        Value used when the setter is passed `None`.

    Returns
    -------
    setter : function
        Called as ``setter(words, value)``, with ``words`` a list that is
        changed in-place.  A value of `True` sets all bits.
    """
    bit_mask = (1 << bit_length) - 1
    shifted_mask = bit_mask << bit_index

    def setter(words, value):
        if value is None:
            if default is None:
                raise ValueError("no default value so cannot set to 'None'.")
            value = default
        elif value is True:
            value = bit_mask
        elif value < 0 or value & bit_mask != value:
            raise ValueError("{0} cannot be represented with {1} bits"
                             .format(value, bit_length))

        word = words[word_index] & ~shifted_mask
        words[word_index] = word | (int(value) << bit_index)
        return words

    return setter


def get_default(word_index, bit_index, bit_length, default=None):
    """Get the default from a key description (`None` if absent)."""
    return default


class ParserDict:
    """Dict of parsers, setters or defaults, created on first access.

    A non-data descriptor: on first access through a `HeaderParserBase`
    instance, the dict is calculated for all keys and stored on the
    instance under the descriptor's name, where it is found directly on
    subsequent access (until any change of the keys clears it).

    Parameters
    ----------
    function : callable
        Called with each key description to get the dict entry, e.g.,
        `make_parser`, `make_setter`, or `get_default`.
    """

    def __init__(self, function):
        self.function = function

    def __set_name__(self, owner, name):
        self.name = name
        self.__doc__ = f"Lazily evaluated dict of {name}"

    def __get__(self, instance, cls=None):
        if instance is None:
            return self

        result = {key: self.function(*description)
                  for key, description in instance.items()}
        setattr(instance, self.name, result)
        return result

    def __repr__(self):
        return f"{self.__class__.__name__}({self.function})"


def _clears_caches(method):
    """Wrap a dict method such that parser caches are cleared after it."""
    @functools.wraps(method)
    def wrapped(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        finally:
            self._clear_caches()

    return wrapped


class HeaderParserBase(dict):
    """Dict of header keys, with their descriptions as values.

    Subclasses define `~xivdat.base.header.ParserDict` attributes that
    turn the descriptions into functions or values.  These are cached,
    and the caches are cleared on any change to the dict.
    """
    __setitem__ = _clears_caches(dict.__setitem__)
    __delitem__ = _clears_caches(dict.__delitem__)
    update = _clears_caches(dict.update)
    pop = _clears_caches(dict.pop)
    popitem = _clears_caches(dict.popitem)
    clear = _clears_caches(dict.clear)

    def copy(self):
        return self.__class__(self)

    def __or__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented

        new = self.copy()
        new.update(other)
        return new

    def _clear_caches(self):
        for name in list(self.__dict__):
            if isinstance(getattr(type(self), name, None), ParserDict):
                del self.__dict__[name]


class HeaderParser(HeaderParserBase):
    """Description of the keys of a header.

    Initialised like a `dict`, from (ordered) key, description pairs.
    Each description is a tuple of:

    word_index : int
        Index of the header word holding the value.
    bit_index : int
        Lowest bit of the value in the word.
    bit_length : int
        Number of bits of the value.
    default : int or bool, optional
        Value used when creating a header without giving one.

    The ``parsers``, ``setters`` and ``defaults`` attributes give dicts
    of the corresponding functions and values for all keys.
    """
    parsers = ParserDict(make_parser)
    setters = ParserDict(make_setter)
    defaults = ParserDict(get_default)


class ParsedHeaderBase:
    """Base class for headers with keys described by a `HeaderParser`.

    Subclasses should define:

      _header_parser : `HeaderParser` describing the keys.

      _properties : tuple of names of properties that can be set in
      `fromvalues` and `update`, in the order in which they are applied.

    Parameters
    ----------
    words : tuple or list
        Header words.  If a tuple, the header is immutable.
    verify : bool, optional
        Whether to check the header is consistent.  Default: `True`.
    """

    _properties = ()
    """Properties that can be used to set the header."""

    def __init__(self, words, verify=True):
        self.words = words
        if verify:
            self.verify()

    def verify(self):
        """Check consistency; nothing to check for the base class."""

    def copy(self, **kwargs):
        """Return a mutable, independent copy of the header.

        Any keyword arguments are passed on to the class initializer.
        """
        kwargs.setdefault('verify', False)
        new = self.__class__(copy(self.words), **kwargs)
        new.mutable = True
        return new

    def __copy__(self):
        return self.copy()

    @property
    def mutable(self):
        """Whether the header can be changed."""
        return not isinstance(self.words, tuple)

    @mutable.setter
    def mutable(self, mutable):
        if not isinstance(self.words, (tuple, list)):
            raise TypeError("cannot set mutability of words of type {0}."
                            .format(type(self.words)))
        self.words = list(self.words) if mutable else tuple(self.words)

    @classmethod
    def fromvalues(cls, *args, **kwargs):
        """Create a header from values for keys or properties.

        Keys that are not given are set to their defaults (if any).
        The values of an existing header can be used, i.e.,
        ``cls.fromvalues(**header) == header``.

        Parameters
        ----------
        *args
            Passed on to the class initializer, after ``words=None``.
        **kwargs
            Values of keys and properties (see `update`).
        """
        self = cls(None, *args, verify=False)
        defaults = self._header_parser.defaults
        for key in self.keys():
            if key not in kwargs and defaults[key] is not None:
                kwargs[key] = defaults[key]

        self.update(**kwargs)
        return self

    @classmethod
    def fromkeys(cls, *args, **kwargs):
        """Create a header from values for all its keys.

        Unlike `fromvalues`, properties cannot be used and no defaults
        are filled in.

        Raises
        ------
        KeyError
            If any keys are missing or unknown keys are given.
        """
        self = cls(None, *args, verify=False)
        keys = set(self.keys())
        given = set(kwargs) - {'verify'}
        problems = []
        if keys - given:
            problems.append(f"is missing keywords ({keys - given})")
        if given - keys:
            problems.append(f"contains extra keywords ({given - keys})")
        if problems:
            raise KeyError("input list " + " and ".join(problems))

        self.update(**kwargs)
        return self

    def update(self, *, verify=True, **kwargs):
        """Set keys and properties of the header.

        Values for keys are set first, and then any properties, in the
        order given by the class ``_properties``.  A warning is given for
        arguments that match neither.

        Parameters
        ----------
        verify : bool, optional
            Whether to check consistency afterwards.  Default: `True`.
        **kwargs
            Values for keys and properties.
        """
        for key in self.keys() & kwargs.keys():
            self[key] = kwargs.pop(key)

        for name in self._properties:
            if name in kwargs:
                setattr(self, name, kwargs.pop(name))

        if kwargs:
            warnings.warn("some keywords unused in header update: {0}"
                          .format(kwargs))

        if verify:
            self.verify()

    def __getitem__(self, item):
        """Value of a key, decoded from the header words."""
        parsers = self._header_parser.parsers
        if item not in parsers:
            raise KeyError("{0} header does not contain {1}"
                           .format(self.__class__.__name__, item))
        return parsers[item](self.words)

    def __setitem__(self, item, value):
        """Encode the value of a key into the header words.

        `None` sets the default for the key; `True` sets all its bits.
        """
        setters = self._header_parser.setters
        if item not in setters:
            raise KeyError("{0} header does not contain {1}"
                           .format(self.__class__.__name__, item))
        if not self.mutable:
            raise TypeError("header is immutable. Set '.mutable' attribute"
                            " or make a copy.")
        setters[item](self.words, value)

    def keys(self):
        """Names of the keys of the header."""
        return self._header_parser.keys()

    def __contains__(self, key):
        return key in self.keys()

    def __eq__(self, other):
        return (type(self) is type(other)
                and tuple(self.words) == tuple(other.words))

    def _repr_value(self, key, value):
        return str(value)

    def __repr__(self):
        name = self.__class__.__name__
        separator = ",\n  " + " " * len(name)
        return "<{0} {1}>".format(name, separator.join(
            f"{key}: {self._repr_value(key, self[key])}"
            for key in self.keys()))


class StructHeaderBase(ParsedHeaderBase):
    """Base class for headers stored as a binary record.

    The words are the fields of a `struct.Struct`; they need not all have
    the same size.  Subclasses should define ``_struct`` in addition to
    the attributes needed by `ParsedHeaderBase`.

    Parameters
    ----------
    words : tuple or list of int, or None
        Header words.  If a tuple, the header is immutable.  If `None`,
        a list of zeros, to be filled in later (verification is skipped).
    verify : bool, optional
        Whether to check the header is consistent.  Default: `True`.
    """

    _struct = struct.Struct('')
    """Layout of the header words.  To be overridden by subclasses."""

    def __init__(self, words, verify=True):
        if words is None:
            words = [0] * self.nwords
            verify = False

        super().__init__(words, verify=verify)

    def verify(self):
        """Check the number of words matches the struct."""
        assert len(self.words) == self.nwords

    @fixedvalue
    def nbytes(cls):
        """Size of the header in bytes."""
        return cls._struct.size

    @fixedvalue
    def nwords(cls):
        """Number of words (struct fields) in the header."""
        return len(cls._struct.unpack(bytes(cls._struct.size)))

    @classmethod
    def frombytes(cls, data, *args, **kwargs):
        """Decode a header from the start of ``data``.

        Any further arguments are passed on to the class initializer.
        The header will be immutable.

        Raises
        ------
        EOFError
            If ``data`` is shorter than the header.
        """
        if len(data) < cls._struct.size:
            raise EOFError("need {0} bytes for a header, got {1}."
                           .format(cls._struct.size, len(data)))
        return cls(cls._struct.unpack_from(data), *args, **kwargs)

    def tobytes(self):
        """Encode the header words."""
        return self._struct.pack(*self.words)

    @classmethod
    def fromfile(cls, fh, *args, **kwargs):
        """Read a header at the current position of a filehandle.

        Arguments are as for `frombytes`.

        Raises
        ------
        EOFError
            If the file ends before the header does.
        """
        data = fh.read(cls._struct.size)
        if len(data) < cls._struct.size:
            raise EOFError("file ended inside the header.")
        return cls(cls._struct.unpack(data), *args, **kwargs)

    def tofile(self, fh):
        """Write the header to a filehandle."""
        return fh.write(self.tobytes())
