"""
A Field is "fundamental" datatype from the format point of view, something
directly unpackable from a stream: integers, byte strings, arrays of chunks.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant, Endianess
from .meta import FieldBase
from .properties import PropertyDescriptor
from .exceptions import BlorbException, UnpackException, MagicException


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, *args, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT,
                 is_magic=False, magic_exception=MagicException):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset  # where the field starts in the stream, set when unpacked
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic
        self.magic_exception = magic_exception

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def is_compliant(self, level):
        '''Tell if the compliance "level" is requested for this field, asking
        the fathers as long as the field inherits.'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def check_magic(self, value):
        if not self.is_magic or value == self.default:
            return

        msg = f'field \'{self.name}\' has value {value!r} instead of {self.default!r}'
        if self.is_compliant(Compliant.MAGIC):
            raise self.magic_exception(msg, chain=[])

        self.logger.warning(msg)

    def _get_value(self):
        return self._value

    def _set_value(self, value):
        self._value = value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
    )

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module unpacking
    integers (or fixed byte strings) from bytes.

    The "enum" argument takes a subclass of enum.Enum so to have directly a
    representation of the value of the field itself.
    """
    FORMAT_PREFIX = {
        Endianess.LITTLE_ENDIAN: '<',
        Endianess.BIG_ENDIAN: '>',
        Endianess.NETWORK: '!',
        Endianess.NATIVE: '=',
    }

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def __repr__(self):
        if self.enum or isinstance(self.value, bytes):
            return f'<{self.__class__.__name__}({self.value!r})>'

        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def value_from_default(self):
        if not self.enum:
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '%s%s' % (self.FORMAT_PREFIX[self.endianess], self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        value = self.value.value if isinstance(self.value, Enum) else self.value
        return struct.pack(self.get_format(), value)

    def _unpack_enum(self, value):
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise UnpackException(f'{value!r} is not a valid {self.enum.__name__}', chain=[])

        self.logger.warning(f'enum {self.enum!r} doesn\'t have element with value {value!r} in it')

        return value

    def unpack(self, stream):
        raw = stream.read_exact(self.size)
        value = struct.unpack(self.get_format(), raw)[0]

        if self.enum:
            value = self._unpack_enum(value)

        self.check_magic(value)

        self.value = value


class StringField(Field):
    """Represent a contiguous chunk of bytes."""

    length = PropertyDescriptor('length', int)

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError("StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def __len__(self):
        return len(self.value)

    def value_from_default(self):
        if self.default is not None:
            return self.default

        # a fixed length is filled with zeroes, a dependent one starts empty
        length = self.__dict__['length']
        return b'\x00' * length if isinstance(length, int) else b''

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        length = self.length
        if length < 0:
            raise UnpackException(f'field \'{self.name}\' would have a negative length ({length})', chain=[])

        value = stream.read_exact(length)

        self.check_magic(value)

        self.value = value


class ArrayField(Field):
    '''Unpack "n" elements, each one a copy of the field (or chunk) passed
    as first argument. It behaves like a (read-only) list.'''

    n = PropertyDescriptor('n', int)

    def __init__(self, field_cls, n=0, **kw):
        self.field_cls = field_cls
        self.n = n

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __iter__(self):
        return iter(self.value)

    def __len__(self):
        return len(self.value)

    def value_from_default(self):
        return list(self.default or [])

    def _get_raw(self):
        return b''.join(element.raw for element in self.value)

    def _get_size(self):
        return sum(element.size for element in self.value)

    def instance_element(self):
        return self.field_cls.create(father=self)  # pass the father so that we don't lose the hierarchy

    def unpack(self, stream):
        n = self.n
        self.logger.debug('unpacking %d elements of %s', n, self.field_cls.__class__.__name__)

        elements = []
        for index in range(n):
            element = self.instance_element()
            element.offset = stream.tell()
            try:
                element.unpack(stream)
            except BlorbException as e:
                e.chain.append(str(index))
                raise
            elements.append(element)

        self.value = elements


class PaddingField(Field):
    '''Realign the stream at the end of a payload of "n" bytes starting at
    "start", then take the pad byte that follows an odd-sized payload.

    If the fields before it didn't consume exactly "n" bytes the stream is
    moved to the end of the payload anyway; the bytes skipped over must be
    there, a payload cut short is a TruncatedChunk.'''

    length = PropertyDescriptor('length', int)
    start  = PropertyDescriptor('start', int)

    def __init__(self, n, start, **kw):
        self.length = n
        self.start = start

        super().__init__(default=b'', **kw)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        length = self.length
        end = self.start + length

        position = stream.tell()
        if position != end:
            self.logger.warning(
                'payload of \'%s\' declares %d bytes but its fields took %d',
                self.father.__class__.__name__, length, position - self.start)

        # the bytes left over must be in the stream as well
        if position < end:
            stream.read_exact(end - position)
        elif position > end:
            stream.seek(end)

        self.value = stream.read_exact(length & 1)
