# Licensed under the GPLv3 - see LICENSE
"""
Known DAT file types and their structural parameters.

Each binary DAT file identifies itself with a type code in the first four
header bytes.  The code selects the mask applied to the content, the
default header end byte, the standard size of the content region, and
how the content is organised: either as a sequence of sections, or as
fixed-size resource records ("Block DATs").

The table ``TYPE_PARAMETERS`` is plain configuration; parameters for a
different revision of the format can be substituted by updating it.
"""
import enum
from collections import namedtuple


__all__ = ['DATType', 'TypeParameters', 'TYPE_PARAMETERS',
           'SECTION_BASED_TYPES', 'get_type_parameters',
           'get_mask_for_type', 'get_default_end_byte_for_type',
           'get_default_max_size_for_type']


class DATType(enum.IntEnum):
    """Known DAT file types.

    The value of each member is the type code stored little-endian in the
    first four header bytes.

    Members can be referred to by a descriptive name or by the file name
    used by the client, e.g., ``DATType.GOLD_SAUCER is DATType.GS``.
    ``UNKNOWN`` stands for files with a zero type code, which follow the
    common layout but whose content is not known.
    """
    GEARSET = 0x006b0005
    GOLD_SAUCER = 0x0067000A
    HOTBAR = 0x00040002
    ITEM_FINDER = 0x00CA0008
    ITEM_ORDER = 0x00670007
    KEYBIND = 0x00650003
    LOG_FILTER = 0x00030004
    MACRO = 0x00020001
    RECENT_TELLS = 0x00640006
    UI_SAVE = 0x00010009
    UNKNOWN = 0

    # Aliases matching file names.
    ACQ = 0x00640006
    GS = 0x0067000A
    ITEMFDR = 0x00CA0008
    ITEMODR = 0x00670007
    LOGFLTR = 0x00030004
    MACROSYS = 0x00020001
    UISAVE = 0x00010009


TypeParameters = namedtuple(
    'TypeParameters',
    ('mask', 'end_byte', 'max_size', 'section_based', 'record_nbytes'))
TypeParameters.__doc__ = """Structural parameters of a DAT file type.

Parameters
----------
mask : bytes
    XOR key applied to the content (empty for no mask).
end_byte : int or None
    Default value of the last header byte, if there is a standard one.
max_size : int or None
    Standard size of the content region, if there is one.
section_based : bool
    Whether the content is a sequence of sections.
record_nbytes : int or None
    Size of a resource record for block types, if known.
"""


TYPE_PARAMETERS = {
    DATType.GEARSET: TypeParameters(b'\x73', 0xFF, 44849, False, 444),
    DATType.GOLD_SAUCER: TypeParameters(b'\x73', 0xFF, 649, False, None),
    DATType.HOTBAR: TypeParameters(b'\x31', 0x31, 204800, False, None),
    DATType.ITEM_FINDER: TypeParameters(b'\x73', 0xFF, 14030, False, None),
    DATType.ITEM_ORDER: TypeParameters(b'\x73', 0xFF, 15193, False, None),
    DATType.KEYBIND: TypeParameters(b'\x73', 0xFF, 20480, True, None),
    DATType.LOG_FILTER: TypeParameters(b'', None, None, False, None),
    DATType.MACRO: TypeParameters(b'\x73', 0xFF, 286720, True, None),
    DATType.RECENT_TELLS: TypeParameters(b'\x73', 0xFF, 2048, True, None),
    DATType.UI_SAVE: TypeParameters(b'\x31', 0x21, 64512, False, None),
    DATType.UNKNOWN: TypeParameters(b'', None, None, False, None),
}
"""Structural parameters for each file type."""

SECTION_BASED_TYPES = frozenset(
    dat_type for dat_type, parameters in TYPE_PARAMETERS.items()
    if parameters.section_based)
"""File types whose content is a sequence of sections."""


def get_type_parameters(dat_type):
    """Get the structural parameters for a file type.

    Raises
    ------
    ValueError
        If ``dat_type`` is not a known type code.
    """
    return TYPE_PARAMETERS[DATType(dat_type)]


def get_mask_for_type(dat_type):
    """XOR key applied to the content of files of the given type.

    The mask applies only to the content, not to the header or footer.
    Returns empty bytes if the type does not use a mask.
    """
    return get_type_parameters(dat_type).mask


def get_default_end_byte_for_type(dat_type):
    """Default value of the last header byte for a given type.

    Its purpose is unknown, but it is a fixed value for each file type.
    Returns `None` if the type has no standard value.
    """
    return get_type_parameters(dat_type).end_byte


def get_default_max_size_for_type(dat_type):
    """Standard size of the content region for a given type."""
    return get_type_parameters(dat_type).max_size
