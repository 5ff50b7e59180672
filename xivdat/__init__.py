# Licensed under the GPLv3 - see LICENSE
"""Access to binary DAT configuration files."""

from .base.base import (DATError, NotADATFileError,  # noqa
                        InvalidMagicError, UnsupportedTypeError,
                        TruncatedError, SectionError,
                        TruncatedSectionError, InvalidTagError,
                        MissingTerminatorError)
from .dat import open, create, file_info, DATFile, DATType  # noqa
from .section import Section, decode_all, encode_all  # noqa

try:
    from .version import version as __version__
except ImportError:
    __version__ = ''

# Define minima for the documentation, but do not bother to explicitly check.
__minimum_python_version__ = '3.10'
__minimum_astropy_version__ = '5.1'
__minimum_numpy_version__ = '1.24'
