# Licensed under the GPLv3 - see LICENSE
"""Binary DAT configuration file reader/writer.

Binary DAT files consist of a fixed-size header, a masked content region
and a null footer.  Files opened with `~xivdat.dat.open` give access to the
unmasked content through ``read``, ``write`` and ``seek``, with the header
and footer maintained automatically.
"""
from .base import (open, create, read_content, write_content,  # noqa
                   check_type, file_info, DATFile)
from .header import DATHeader, decode_header, encode_header  # noqa
from .mask import XORMask, apply_mask  # noqa
from .types import DATType  # noqa
