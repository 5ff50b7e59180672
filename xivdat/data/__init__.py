# Licensed under the GPLv3 - see LICENSE
"""Sample DAT files."""

# Use private names to avoid inclusion in the sphinx documentation.
from os import path as _path


def _full_path(name, dirname=_path.dirname(_path.abspath(__file__))):
    return _path.join(dirname, name)


SAMPLE_DAT = _full_path('TEST.DAT')
"""DAT file with a zero (unknown) type code and no mask.

max_size=7, content ``b'Boop!'`` (content_size=6, including terminator).
"""

SAMPLE_MACRO = _full_path('TEST_XOR.DAT')
"""Macro DAT file, masked with 0x73.

max_size=8, content ``b'Macro!'`` (content_size=7, including terminator).
The content is not a valid sequence of sections.
"""

SAMPLE_SECTIONS = _full_path('TEST_SECTIONS.DAT')
"""Macro DAT file holding two sections, masked with 0x73.

Sections are ``('T', 'Test')`` and ``('L', 'hi')``, using 2-byte length
fields; max_size=16, content_size=15.
"""
