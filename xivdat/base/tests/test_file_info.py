# Licensed under the GPLv3 - see LICENSE
"""Test the generic info machinery with a minimal parent."""
import pytest

from ..file_info import info_item, InfoBase, NoInfo


class BareInfo(InfoBase):
    attr_names = ('format', 'size', 'double', 'broken', 'absent',
                  'readable', 'missing', 'errors', 'warnings')

    size = info_item(needs='_parent', doc='Size of the parent.')
    absent = info_item('nothing', needs='_parent',
                       missing='parent has no nothing')

    @info_item(needs='size')
    def format(self):
        """The file format."""
        return 'bare'

    @info_item(needs='size')
    def double(self):
        """Twice the size."""
        if self.size > 10:
            self.warnings['double'] = 'large size'
        return 2 * self.size

    @info_item(needs='size')
    def broken(self):
        """Always fails."""
        raise ValueError('broken')

    @info_item(needs='size', default=False)
    def readable(self):
        """Whether the parent can be read."""
        return self.size > 0


class BareParent:
    info = BareInfo()

    def __init__(self, size):
        self.size = size
        self.closed = False
        self.nothing = None


def test_str_repr():
    assert str(BareInfo.errors).startswith('errors: ')
    assert str(BareInfo.size) == 'size: Size of the parent.'
    assert str(BareInfo.double) == 'double: Twice the size.'
    assert str(BareInfo.readable).startswith('readable: ')
    assert repr(BareInfo.errors).startswith('<info_item errors')
    assert repr(BareInfo()).startswith('BareInfo (unbound)')
    assert repr(BareParent.info).startswith('BareInfo (unbound)')
    with pytest.raises(TypeError, match="assigned 'info_item'"):
        BareInfo.double('a')


def test_info():
    parent = BareParent(5)
    info = parent.info
    assert info
    assert info.format == 'bare'
    assert info.size == 5
    assert info.double == 10
    assert info.broken is None
    assert isinstance(info.errors['broken'], ValueError)
    assert info.absent is None
    assert info.missing == {'absent': 'parent has no nothing'}
    assert info.readable is True
    assert info.warnings == {}
    assert info() == {'format': 'bare', 'size': 5, 'double': 10,
                      'readable': True, 'missing': info.missing,
                      'errors': info.errors}
    text = repr(info)
    assert text.startswith('BareParent information:')
    assert 'double = 10' in text
    assert 'errors:  broken: broken' in text


def test_info_cached_and_updated():
    parent = BareParent(5)
    info = parent.info
    assert parent.info is info
    parent.size = 11
    info2 = parent.info
    assert info2 is not info
    assert info2.double == 22
    assert info2.warnings == {'double': 'large size'}
    del parent.info
    assert parent.info is not info2


def test_info_closed():
    parent = BareParent(5)
    parent.closed = True
    info = parent.info
    assert repr(info) == 'File closed. Not parsable.'


def test_no_info():
    info = NoInfo('not a bare file')
    assert not info
    assert repr(info) == 'No Info: not a bare file'
