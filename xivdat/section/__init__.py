# Licensed under the GPLv3 - see LICENSE
"""Section records, as found in the content of macro and keybind files."""
from .codec import (Section, SectionCodec, SectionSequence,  # noqa
                    decode_all, encode_all, read_sections, write_sections,
                    DEFAULT_LENGTH_NBYTES)
