# Licensed under the GPLv3 - see LICENSE
import pytest

from ..types import (DATType, TYPE_PARAMETERS, SECTION_BASED_TYPES,
                     get_type_parameters, get_mask_for_type,
                     get_default_end_byte_for_type,
                     get_default_max_size_for_type)


def test_aliases():
    assert DATType.ACQ is DATType.RECENT_TELLS
    assert DATType.GS is DATType.GOLD_SAUCER
    assert DATType.MACROSYS is DATType.MACRO
    assert DATType.UISAVE is DATType.UI_SAVE
    assert DATType(0x00020001) is DATType.MACRO
    assert DATType(0) is DATType.UNKNOWN
    with pytest.raises(ValueError):
        DATType(0x00020002)


def test_table_complete():
    assert set(TYPE_PARAMETERS) == set(DATType)
    for dat_type in DATType:
        # All type codes have the format marker bytes zero.
        assert dat_type & 0xFF00FF00 == 0


def test_section_based():
    assert SECTION_BASED_TYPES == {DATType.ACQ, DATType.KEYBIND,
                                   DATType.MACRO}


@pytest.mark.parametrize('dat_type,mask,end_byte,max_size', [
    (DATType.MACRO, b'\x73', 0xFF, 286720),
    (DATType.HOTBAR, b'\x31', 0x31, 204800),
    (DATType.UI_SAVE, b'\x31', 0x21, 64512),
    (DATType.GEARSET, b'\x73', 0xFF, 44849),
    (DATType.LOG_FILTER, b'', None, None),
    (DATType.UNKNOWN, b'', None, None),
    (0x00650003, b'\x73', 0xFF, 20480)])
def test_lookups(dat_type, mask, end_byte, max_size):
    assert get_mask_for_type(dat_type) == mask
    assert get_default_end_byte_for_type(dat_type) == end_byte
    assert get_default_max_size_for_type(dat_type) == max_size


def test_record_nbytes():
    assert get_type_parameters(DATType.GEARSET).record_nbytes == 444
    assert get_type_parameters(DATType.MACRO).record_nbytes is None


def test_unknown_code():
    with pytest.raises(ValueError):
        get_type_parameters(0x00020002)
