# Licensed under the GPLv3 - see LICENSE
"""Lazily evaluated, error-tolerant information about open files.

An ``info`` descriptor on a file class gives an `InfoBase` instance whose
items are computed on first access from the file (its "parent").  Failing
items do not raise; the exception is stored in ``errors`` instead, so that
information can be shown even for broken files.
"""
import copy
import enum
import operator

from astropy.time import Time


__all__ = ['info_item', 'InfoBase', 'NoInfo']


class info_item:
    """Information item, computed once and then stored on the instance.

    Can be used directly as a class attribute, or as a decorator (with or
    without arguments).  Exceptions raised while computing the value are
    stored in the instance's ``errors`` dict, and ``default`` is used.

    Parameters
    ----------
    attr : str or callable, optional
        A callable is used to compute the value from the instance.  A
        string names the attribute to look up on the last of ``needs``
        (e.g., ``info_item('dat_type', needs='header')``).  If not given,
        the name under which the item is defined on the class is used.
    needs : str or tuple of str
        Attributes of the instance that should not be `None` for the
        value to be computed.  Otherwise, ``default`` is used.
    default : value, optional
        Value if the needs are not met or an error occurred.
        Default: `None`.
    doc : str, optional
        Docstring.  By default, taken from ``attr`` if it is a function.
    missing : str, optional
        Message stored in the instance's ``missing`` dict if the value
        turns out to be `None`.
    copy : bool
        Whether to store a (shallow) copy of the value, e.g., to get an
        independent `dict` for each instance.
    """
    _fget = None

    def __init__(self, attr=None, *, needs=(), default=None, doc=None,
                 missing=None, copy=False):
        if not isinstance(needs, (tuple, list)):
            needs = (needs,)
        self.needs = tuple(needs)
        self.default = default
        self.missing = missing
        self.copy = copy
        self._setup(attr, doc)

    def _setup(self, attr, doc=None):
        if callable(attr):
            self._fget = attr
            self.name = attr.__name__
            doc = attr.__doc__
        elif attr is not None:
            self.name = attr
            if self._fget is None and self.needs:
                path = '.'.join(self.needs + (attr,))
                self._fget = operator.attrgetter(path)
                doc = "Link to " + path.replace('_parent', 'parent')
        if doc and self.__doc__ is self.__class__.__doc__:
            self.__doc__ = doc

    def __set_name__(self, owner, name):
        self._setup(name)

    def __call__(self, func):
        # Only reached for decorators with arguments, @info_item(needs=...).
        if hasattr(self, 'name'):
            raise TypeError(f"assigned {self.__class__.__name__!r}"
                            f" is not callable")
        self._setup(func)
        return self

    def __get__(self, instance, cls=None):
        if instance is None:
            return self

        value = self.default
        if self._fget and all(getattr(instance, need, None) is not None
                              for need in self.needs):
            try:
                result = self._fget(instance)
            except Exception as exc:
                instance.errors[self.name] = exc
            else:
                if result is not None:
                    value = result
                elif self.missing:
                    instance.missing[self.name] = self.missing

        if self.copy:
            value = copy.copy(value)

        # Not a data descriptor, so the stored value takes precedence.
        setattr(instance, self.name, value)
        return value

    def __str__(self):
        summary = (self.__doc__ or '').split('\n')[0]
        return f"{self.name}: {summary}"

    def __repr__(self):
        name = self.__class__.__name__
        extra = ', '.join(f"{a}={getattr(self, a)}"
                          for a in ('needs', 'default', 'missing', 'copy')
                          if getattr(self, a)
                          or a == 'default' and self.default is not None)
        if extra:
            extra = f"\n{' '*len(name)}  {extra}"
        return f"<{name} {self}{extra}>"


class InfoBase:
    """Base for ``info`` descriptors of file readers.

    Subclasses list the items to show in ``attr_names`` and define them
    with `~xivdat.base.file_info.info_item`.  Items that check whether
    the file can be read are expected to store their outcome in
    ``checks``; non-fatal problems go in ``warnings``.

    An instance is `True` if the file has the right format, i.e., if the
    ``format`` item could be determined.

    Parameters
    ----------
    parent : instance, optional
        File the information is about.  `None` for the descriptor on the
        class.
    """

    attr_names = ()
    """Items shown by ``repr`` and returned on calling the instance."""

    _parent = None
    closed = info_item(needs='_parent', doc='Whether parent is closed')
    missing = info_item(default={}, copy=True,
                        doc='dict of missing attributes.')
    checks = info_item(default={}, copy=True,
                       doc='dict of checks for readability.')
    errors = info_item(default={}, copy=True,
                       doc='dict of attributes that raised errors.')
    warnings = info_item(default={}, copy=True,
                         doc='dict of attributes that gave warnings.')

    def __init__(self, parent=None):
        if parent is not None:
            self._parent = parent
            if not self.closed:
                for attr in self.attr_names:
                    getattr(self, attr)

    @classmethod
    def _linked_attrs(cls):
        # Items taken straight from the parent; computed once per class.
        if '_parent_attrs' not in cls.__dict__:
            cls._parent_attrs = tuple(
                attr for attr in dir(cls) if not attr.startswith('_')
                and getattr(getattr(cls, attr), 'needs', ()) == ('_parent',))
        return cls._parent_attrs

    def _up_to_date(self):
        return all(getattr(self, attr) == getattr(self._parent, attr, None)
                   for attr in self._linked_attrs())

    def __get__(self, instance, owner_cls):
        if instance is None:
            return self

        info = instance.__dict__.get('info')
        if info is None or not info._up_to_date():
            info = instance.__dict__['info'] = self.__class__(parent=instance)

        return info

    def __delete__(self, instance):
        # Makes this a data descriptor, so __get__ is always used.
        instance.__dict__.pop('info', None)

    def __bool__(self):
        return self.format is not None

    def __call__(self):
        """Return all available information as a dict.

        Items that are `None` or empty dicts are left out.
        """
        info = {}
        for attr in self.attr_names:
            value = getattr(self, attr)
            if not (value is None or isinstance(value, dict) and not value):
                info[attr] = value
        return info

    def __repr__(self):
        if self._parent is None:
            return '\n'.join(
                [f"{self.__class__.__name__} (unbound) with attributes:"]
                + [f"  {getattr(self.__class__, attr)}"
                   for attr in self.attr_names])

        if self.closed:
            return "File closed. Not parsable."

        lines = [self._parent.__class__.__name__ + ' information:']
        for attr in self.attr_names:
            value = getattr(self, attr)
            if isinstance(value, dict):
                prefix = f"\n{attr}: "
                for key, val in value.items():
                    lines.append(f"{prefix} {key}: {str(val) or repr(val)}")
                    prefix = ' ' * (len(attr) + 2)
            elif value is not None:
                if isinstance(value, Time):
                    value = Time(value, format='isot', precision=3)
                elif isinstance(value, enum.Enum):
                    value = value.name
                lines.append(f"{attr} = {value}")

        if not self:
            lines.append('\nNot parsable. Wrong format?')

        return '\n'.join(lines)


class NoInfo:
    """Stand-in for information on a file that could not be opened.

    Always evaluates as `False`.

    Parameters
    ----------
    info : str
        Reason, shown by ``repr``.
    """
    def __init__(self, info=None):
        self.info = info

    def __bool__(self):
        return False

    def __repr__(self):
        return f"No Info: {self.info}"
