# Licensed under the GPLv3 - see LICENSE
from operator import index

import numpy as np
from astropy.utils import classproperty


__all__ = ['fixedvalue', 'byte_array']


class fixedvalue(classproperty):
    """Property that is fixed for all instances of a class.

    Based on `astropy.utils.decorators.classproperty`, but with
    a setter that passes if the value is identical to the fixed
    value, and otherwise raises a `ValueError`.
    """
    def __set__(self, instance, value):
        fixed_value = self.__get__(instance, type(instance))
        if value != fixed_value:
            raise ValueError('fixed property can only be set to {}.'
                             .format(fixed_value))


def byte_array(pattern):
    """Convert the pattern to a byte array.

    Parameters
    ----------
    pattern : ~numpy.ndarray, bytes, bytearray, memoryview, int, or iterable of int
        Pattern to convert.  If a `~numpy.ndarray` or bytes-like instance,
        a byte array view is taken.  If an (iterable of) int, the integers
        need to fit in a single byte.

    Returns
    -------
    byte_array : `~numpy.ndarray` of byte
    """
    if isinstance(pattern, np.ndarray):
        # Quick turn-around for input that is OK already:
        return np.atleast_1d(pattern).view('u1')

    if isinstance(pattern, (bytes, bytearray, memoryview)):
        return np.frombuffer(pattern, dtype='u1')

    try:
        pattern = [index(pattern)]
    except TypeError:
        pass

    pattern = np.array(pattern, ndmin=1)
    if pattern.size and (pattern.dtype.kind not in 'ui'
                         or pattern.min() < 0
                         or pattern.max() >= 1 << 8):
        raise ValueError('values have to fit in 8 bit unsigned int.')
    return pattern.astype('u1')
