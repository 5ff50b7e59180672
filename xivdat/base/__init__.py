# Licensed under the GPLv3 - see LICENSE
"""Base implementations shared between file formats.

Files are considered as composed of a fixed-size header and a content
block, which are encoded in various ways.  Base classes implementing the
decoding and encoding of headers and exposing a standardized interface are
found in the `~xivdat.base.header` module.

The `~xivdat.base.base` module defines the base file wrapper and the
opener used to create the ``open`` function of a format, as well as the
errors raised for files that cannot be interpreted.  Each file reader has
an ``info`` property, defined in `~xivdat.base.file_info`, that provides
standardized information.

Finally, `~xivdat.base.utils` contains some general utility routines.
"""
from .header import (HeaderParser, ParsedHeaderBase,  # noqa
                     StructHeaderBase)
from .base import *  # noqa
from .utils import *  # noqa
