from enum import Enum, auto

import pytest

from blorb.enum import Compliant, Endianess
from blorb.exceptions import MagicException, TruncatedChunk, UnpackException
from blorb.fields import StructField, StringField, ArrayField, PaddingField
from blorb.streams import Stream


def test_structfield_conversion_raw_value():
    """Check that the attributes "value" and "raw" are the analogous
    of the integers and bytes representation for a field."""
    field = StructField('I')

    assert field.size == 4
    assert field.raw == b'\x00\x00\x00\x00'
    assert field.value == 0

    field.value = 0xcafe

    assert field.value == 0xcafe
    assert field.raw == b'\xfe\xca\x00\x00'


def test_structfield_unpack():
    field = StructField('I')
    field.unpack(Stream(b'\x01\x02\x03\x04'))
    assert field.value == 0x04030201

    field = StructField('I', endianess=Endianess.BIG_ENDIAN)
    field.unpack(Stream(b'\x01\x02\x03\x04'))
    assert field.value == 0x01020304
    assert field.raw == b'\x01\x02\x03\x04'

    with pytest.raises(TruncatedChunk):
        StructField('I').unpack(Stream(b'\x01\x02'))


class DummyEnum(Enum):
    NONE = 0
    FIRST = auto()
    SECOND = auto()


def test_structfield_enum():
    field = StructField('I', enum=DummyEnum, compliant=Compliant.ENUM)

    assert field.value == DummyEnum.NONE

    field.value = DummyEnum.SECOND

    assert field.value == DummyEnum.SECOND
    assert field.raw == b'\x02\x00\x00\x00'

    field.unpack(Stream(b'\x01\x00\x00\x00'))
    assert field.value == DummyEnum.FIRST

    with pytest.raises(UnpackException):
        field.unpack(Stream(b'\x04\x00\x00\x00'))


def test_structfield_enum_not_compliant(caplog):
    field = StructField('I', enum=DummyEnum, compliant=Compliant.NONE)

    field.unpack(Stream(b'\x04\x00\x00\x00'))

    assert field.value == 4
    assert 'DummyEnum' in caplog.text


def test_structfield_magic():
    class CustomMagic(MagicException):
        pass

    field = StructField('I', default=0xcafe, is_magic=True, compliant=Compliant.MAGIC)
    field.unpack(Stream(b'\xfe\xca\x00\x00'))
    assert field.value == 0xcafe

    with pytest.raises(MagicException):
        field.unpack(Stream(b'\xad\xde\x00\x00'))

    field = StructField('I', default=0xcafe, is_magic=True, compliant=Compliant.MAGIC, magic_exception=CustomMagic)
    with pytest.raises(CustomMagic):
        field.unpack(Stream(b'\xad\xde\x00\x00'))

    field = StructField('I', default=0xcafe, is_magic=True, compliant=Compliant.NONE)
    field.unpack(Stream(b'\xad\xde\x00\x00'))
    assert field.value == 0xdead


def test_stringfield():
    field = StringField(0x10)

    assert field.size == 0x10
    assert len(field.raw) == field.size
    assert field.raw == b'\x00' * field.size

    data = b''.join([bytes([_]) for _ in range(0x10)])

    field.unpack(Stream(data + b'trailing'))

    assert field.value == data
    assert field.raw == data


def test_stringfield_errors():
    with pytest.raises(ValueError):
        StringField()

    with pytest.raises(UnpackException):
        StringField(-1).unpack(Stream(b'whatever'))

    with pytest.raises(TruncatedChunk) as excinfo:
        StringField(10).unpack(Stream(b'kebab'))

    assert 'expected 10 bytes at offset 0x0 but only 5 are available' in str(excinfo.value)


def test_arrayfield():
    length = 3
    array = ArrayField(StructField('I'), n=length)

    assert isinstance(array.value, list)
    assert len(array) == 0

    array.unpack(Stream(b'\x01\x00\x00\x00\x02\x00\x00\x00\x03\x00\x00\x00'))

    assert len(array.value) == length
    assert len(array) == length

    # check that the elements are not duplicated
    assert array[0] is not array[1]
    assert array[0].father is array

    # check the offsets make sense
    assert array[0].offset == 0
    assert array[1].offset == 4
    assert array[2].offset == 8

    assert [_.value for _ in array] == [1, 2, 3]
    assert array.size == 12


def test_arrayfield_error():
    array = ArrayField(StructField('I'), n=3)

    with pytest.raises(TruncatedChunk) as excinfo:
        array.unpack(Stream(b'\x00' * 10))

    assert excinfo.value.chain == ['2']


def test_paddingfield():
    stream = Stream(b'ABCDE\x00XY')
    stream.read(5)

    padding = PaddingField(5, 0)
    padding.unpack(stream)

    assert padding.value == b'\x00'
    assert stream.tell() == 6

    # even sizes have no pad byte
    stream = Stream(b'ABCD')
    stream.read(4)

    padding = PaddingField(4, 0)
    padding.unpack(stream)

    assert padding.value == b''
    assert stream.tell() == 4


def test_paddingfield_realign(caplog):
    stream = Stream(b'ABCDEFG\x00')
    stream.read(2)

    padding = PaddingField(7, 0)
    padding.unpack(stream)

    assert padding.value == b'\x00'
    assert stream.tell() == 8
    assert 'declares 7 bytes but its fields took 2' in caplog.text


def test_paddingfield_missing_pad_byte():
    stream = Stream(b'ABC')
    stream.read(3)

    with pytest.raises(TruncatedChunk):
        PaddingField(3, 0).unpack(stream)
