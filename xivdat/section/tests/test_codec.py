# Licensed under the GPLv3 - see LICENSE
import shutil

import pytest

from ...base.base import (SectionError, TruncatedSectionError,
                          InvalidTagError, MissingTerminatorError)
from ...data import SAMPLE_SECTIONS, SAMPLE_DAT
from ... import dat
from ..codec import (Section, SectionCodec, SectionSequence,
                     decode_all, encode_all, read_sections, write_sections,
                     DEFAULT_LENGTH_NBYTES)


class TestSection:
    def test_basics(self):
        section = Section('M', 'abcd')
        assert section.tag == 'M'
        assert section.content == 'abcd'
        assert section.content_size == 5
        assert section == ('M', 'abcd')
        assert Section('T', 'ü').content_size == 3
        assert section.tobytes() == b'M\x05\x00abcd\x00'
        assert section.tobytes(1) == b'M\x05abcd\x00'
        assert section.tobytes(4) == b'M\x05\x00\x00\x00abcd\x00'


class TestSectionCodec:
    def setup_class(cls):
        cls.data = b'M\x05\x00abcd\x00K\x03\x00ef\x00'
        cls.sections = [Section('M', 'abcd'), Section('K', 'ef')]

    def test_decode_all(self):
        assert DEFAULT_LENGTH_NBYTES == 2
        sections = decode_all(self.data)
        assert isinstance(sections, SectionSequence)
        result = list(sections)
        assert len(result) == 2
        assert result[0].tag == 'M'
        assert result[0].content == 'abcd'
        assert result[1].tag == 'K'
        assert result[1].content == 'ef'
        assert result == self.sections

    def test_restartable(self):
        sections = decode_all(self.data)
        assert list(sections) == list(sections)
        assert len(sections) == 2
        iterator = iter(sections)
        assert next(iterator) == self.sections[0]
        assert list(sections) == self.sections
        assert next(iterator) == self.sections[1]
        assert 'SectionSequence of 14 bytes' in repr(sections)

    def test_decode_single(self):
        codec = SectionCodec()
        section, offset = codec.decode(self.data)
        assert section == self.sections[0]
        assert offset == 8
        section, offset = codec.decode(self.data, offset)
        assert section == self.sections[1]
        assert offset == len(self.data)

    def test_encode_all(self):
        assert encode_all(self.sections) == self.data
        assert encode_all([]) == b''
        # Plain tuples work too; lengths are always recalculated.
        assert encode_all([('M', 'abcd'), ('K', 'ef')]) == self.data

    @pytest.mark.parametrize('length_nbytes', [1, 2, 4])
    def test_round_trip(self, length_nbytes):
        sections = [Section('T', 'Title'), Section('L', ''),
                    Section('I', 'Ünïcödé text'), Section('é', 'tag'),
                    Section('🎮', 'wide tag'), Section('L', '/echo hi')]
        codec = SectionCodec(length_nbytes)
        encoded = codec.encode_all(sections)
        assert list(codec.decode_all(encoded)) == sections
        assert list(decode_all(encoded, length_nbytes)) == sections

    def test_stops_at_padding(self):
        sections = list(decode_all(self.data + bytes(20)))
        assert sections == self.sections
        assert list(decode_all(b'')) == []
        assert list(decode_all(bytes(10))) == []

    def test_embedded_null(self):
        section = Section('M', 'a\x00b')
        assert list(decode_all(section.tobytes())) == [section]

    def test_invalid_length_nbytes(self):
        with pytest.raises(ValueError):
            SectionCodec(3)

    def test_content_too_long(self):
        codec = SectionCodec(1)
        assert codec.max_content_size == 255
        assert len(codec.encode(Section('M', 'a' * 254))) == 257
        with pytest.raises(ValueError, match='too long'):
            codec.encode(Section('M', 'a' * 255))

    @pytest.mark.parametrize('tag', ['', 'MK', '\x00', 5, '\ud800'])
    def test_encode_invalid_tag(self, tag):
        with pytest.raises(InvalidTagError):
            encode_all([Section(tag, 'abc')])


class TestDecodeErrors:
    def test_truncated(self):
        sections = decode_all(b'M\x05\x00abcd\x00K\x09\x00ef\x00')
        iterator = iter(sections)
        assert next(iterator) == Section('M', 'abcd')
        with pytest.raises(TruncatedSectionError):
            next(iterator)
        with pytest.raises(TruncatedSectionError):
            list(sections)

    def test_truncated_length(self):
        with pytest.raises(TruncatedSectionError):
            list(decode_all(b'M\x05\x00abcd\x00K\x03'))

    @pytest.mark.parametrize('data', [
        b'\x80\x03\x00ef\x00',
        b'\xff\x03\x00ef\x00',
        b'\xc3\x28\x03\x00ef\x00',
        b'\xe2\x82'])
    def test_invalid_tag(self, data):
        with pytest.raises(InvalidTagError):
            list(decode_all(data))

    @pytest.mark.parametrize('data', [
        b'M\x04\x00abcd',
        b'M\x00\x00abcd',
        b'M\x05\x00abcde'])
    def test_missing_terminator(self, data):
        with pytest.raises(MissingTerminatorError):
            list(decode_all(data))

    def test_invalid_utf8(self):
        with pytest.raises(UnicodeDecodeError):
            list(decode_all(b'M\x03\x00\xff\xfe\x00'))

    def test_all_section_errors(self):
        for data in (b'M\x09\x00ab\x00', b'\x80\x01\x00\x00',
                     b'M\x02\x00ab'):
            with pytest.raises(SectionError):
                list(decode_all(data))
            with pytest.raises(ValueError):
                list(decode_all(data))


class TestSectionFiles:
    def test_read_sections(self):
        sections = read_sections(SAMPLE_SECTIONS)
        assert sections == [Section('T', 'Test'), Section('L', 'hi')]

    def test_read_sections_wrong_type(self):
        with pytest.warns(UserWarning, match='not known to contain'):
            with pytest.raises(TruncatedSectionError):
                read_sections(SAMPLE_DAT)

    def test_write_sections(self, tmpdir):
        name = str(tmpdir.join('MACRO.DAT'))
        shutil.copy(SAMPLE_SECTIONS, name)
        sections = read_sections(name)
        sections.append(Section('L', 'more'))
        with pytest.warns(UserWarning, match='increasing'):
            assert write_sections(name, sections) == 14 + 8
        assert read_sections(name) == sections
        # File was extended beyond its (small) maximum size.
        with dat.open(name, 'rb') as fh:
            assert fh.max_size == 23
