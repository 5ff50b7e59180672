# Licensed under the GPLv3 - see LICENSE
import struct

import pytest

from ...base.base import (DATError, NotADATFileError, InvalidMagicError,
                          UnsupportedTypeError, TruncatedError)
from ...data import SAMPLE_DAT, SAMPLE_MACRO
from ..header import (DATHeader, decode_header, encode_header,
                      HEADER_NBYTES, FOOTER_NBYTES)
from ..mask import XORMask
from ..types import DATType


class TestDATHeader:
    def setup_class(cls):
        with open(SAMPLE_MACRO, 'rb') as fh:
            cls.raw = fh.read()

    def test_header(self, tmpdir):
        with open(SAMPLE_MACRO, 'rb') as fh:
            header = DATHeader.fromfile(fh)
        assert HEADER_NBYTES == 17
        assert header.nbytes == 17
        assert header['file_type'] == 0x00020001
        assert header.dat_type is DATType.MACRO
        assert header['max_size'] == 8
        assert header['content_size'] == 7
        assert header.content_nbytes == 6
        assert header['reserved'] == 0
        assert header['end_byte'] == 0xff
        assert header.mask == XORMask(b'\x73')
        assert header.parameters.section_based
        assert header.padding_nbytes == 1 + FOOTER_NBYTES
        assert header.file_nbytes == len(self.raw)
        assert header.mutable is False
        with open(str(tmpdir.join('test.dat')), 'w+b') as s:
            header.tofile(s)
            s.seek(0)
            header2 = DATHeader.fromfile(s)
        assert header2 == header
        header3 = DATHeader.fromkeys(**header)
        assert header3 == header
        assert header3.mutable is True
        header4 = DATHeader.fromvalues(dat_type=DATType.MACRO, max_size=8,
                                       content_nbytes=6)
        assert header4 == header
        header5 = header.copy()
        header5.content_nbytes = 10
        assert header5['content_size'] == 11
        assert header5 != header
        with pytest.raises(TypeError):
            header['content_size'] = 3
        with pytest.raises(ValueError):
            header5.content_nbytes = -1
        assert 'file_type: 0x20001' in repr(header)
        assert 'end_byte: 0xff' in repr(header)

    def test_decode_encode(self):
        header = decode_header(self.raw)
        assert header.dat_type is DATType.MACRO
        encoded = encode_header(header)
        assert len(encoded) == HEADER_NBYTES
        assert encoded == self.raw[:HEADER_NBYTES]

    def test_unknown_fields_preserved(self):
        data = struct.pack('<4IB', 0x00020001, 100, 5, 0xdeadbeef, 0x12)
        header = decode_header(data)
        assert header['reserved'] == 0xdeadbeef
        assert header['end_byte'] == 0x12
        header2 = header.copy()
        header2.content_nbytes = 50
        assert encode_header(header2) == struct.pack(
            '<4IB', 0x00020001, 100, 51, 0xdeadbeef, 0x12)

    def test_unknown_type(self):
        with open(SAMPLE_DAT, 'rb') as fh:
            header = DATHeader.fromfile(fh)
        assert header.dat_type is DATType.UNKNOWN
        assert header.content_nbytes == 5
        assert not header.mask

    def test_truncated(self):
        with pytest.raises(TruncatedError):
            decode_header(self.raw[:16])
        with pytest.raises(EOFError):
            decode_header(b'')
        with open(SAMPLE_MACRO, 'rb') as fh:
            fh.seek(30)
            with pytest.raises(TruncatedError):
                DATHeader.fromfile(fh)

    @pytest.mark.parametrize('words,exception', [
        ((0x01020001, 8, 7, 0, 0xff), InvalidMagicError),
        ((0x00020101, 8, 7, 0, 0xff), InvalidMagicError),
        ((0x00020002, 8, 7, 0, 0xff), UnsupportedTypeError),
        ((0x00020001, 8, 0, 0, 0xff), NotADATFileError),
        ((0x00020001, 8, 9, 0, 0xff), NotADATFileError)])
    def test_invalid(self, words, exception):
        data = struct.pack('<4IB', *words)
        with pytest.raises(exception):
            decode_header(data)
        with pytest.raises(NotADATFileError):
            decode_header(data)
        with pytest.raises(DATError):
            decode_header(data)
        with pytest.raises(ValueError):
            decode_header(data)
        # Can still be read without verification.
        header = DATHeader.frombytes(data, verify=False)
        assert header.words == words

    @pytest.mark.parametrize('dat_type,max_size,end_byte', [
        (DATType.MACRO, 286720, 0xff),
        (DATType.HOTBAR, 204800, 0x31),
        (DATType.UI_SAVE, 64512, 0x21),
        (DATType.UNKNOWN, 1, 0)])
    def test_fromvalues_defaults(self, dat_type, max_size, end_byte):
        header = DATHeader.fromvalues(dat_type=dat_type)
        assert header.dat_type is dat_type
        assert header['max_size'] == max_size
        assert header['end_byte'] == end_byte
        assert header['content_size'] == 1
        assert header.content_nbytes == 0
        assert header['reserved'] == 0
        assert header.mutable
        # file_type works as well, also as plain integer.
        assert DATHeader.fromvalues(file_type=int(dat_type)) == header

    def test_fromvalues_explicit(self):
        header = DATHeader.fromvalues(file_type=DATType.GEARSET,
                                      max_size=1000, end_byte=0x12,
                                      content_size=445, reserved=3)
        assert header.words == [0x006b0005, 1000, 445, 3, 0x12]
        header = DATHeader.fromvalues(dat_type=DATType.UNKNOWN,
                                      content_nbytes=10)
        assert header['max_size'] == 11

    def test_fromvalues_invalid(self):
        with pytest.raises(TypeError):
            DATHeader.fromvalues(max_size=10)
        with pytest.raises(UnsupportedTypeError):
            DATHeader.fromvalues(file_type=0x00020002)
        with pytest.raises(NotADATFileError):
            DATHeader.fromvalues(file_type=DATType.MACRO, max_size=10,
                                 content_nbytes=10)
