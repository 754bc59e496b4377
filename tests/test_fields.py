import struct

import pytest

from tlvchunk import fields
from tlvchunk.exceptions import (
    InvalidEncodingException,
    SchemaException,
    TruncatedException,
)
from tlvchunk.meta import Endianess
from tlvchunk.records import Record, Container


def test_structfield():
    field = fields.StructField('I')

    assert field.size == 4
    assert field.unpack(b'\x01\x02\x03\x04') == 0x04030201


def test_structfield_big_endian():
    field = fields.StructField('H', offset=2, endianess=Endianess.BIG_ENDIAN)

    assert field.size == 2
    assert field.unpack(b'\x00\x00\xca\xfe') == 0xcafe


def test_structfield_truncated():
    field = fields.StructField('I', offset=4)

    with pytest.raises(TruncatedException) as e:
        field.unpack(b'\x00' * 6)

    assert e.value.offset == 4
    assert e.value.expected == 4
    assert e.value.available == 2


def test_stringfield():
    field = fields.StringField(8)

    assert field.size == 8
    assert len(field) == 8
    assert field.unpack(b'abc\x00def\x00') == 'abc'
    assert field.unpack(b'abcdefgh') == 'abcdefgh'
    assert field.unpack(b'\x00' * 8) == ''
    assert field.unpack('àè\x00'.encode('utf-8') + b'\xff' * 3) == 'àè'


def test_stringfield_invalid_encoding():
    field = fields.StringField(4, offset=2)

    with pytest.raises(InvalidEncodingException) as e:
        field.unpack(b'\x00\x00a\xffb\x00')

    assert e.value.offset == 3


def test_arrayfield_deduplicates():
    field = fields.ArrayField(fields.StructField('I'), stride=8)
    data = struct.pack('<II', 0x1111, 0xaaaa) + struct.pack('<II', 0x2222, 0xbbbb) + struct.pack('<II', 0x1111, 0)

    value = field.unpack(data)

    assert value == {0x1111, 0x2222}
    assert len(value) == 2


def test_arrayfield_empty():
    field = fields.ArrayField(fields.StructField('I'), stride=8)

    assert field.unpack(b'') == frozenset()


def test_arrayfield_partial_stride():
    field = fields.ArrayField(fields.StructField('I'), stride=8)

    # the last stride is short but holds a whole element
    assert field.unpack(struct.pack('<3I', 1, 0, 2)) == {1, 2}
    assert field.unpack(b'\x00' * 20) == {0}


def test_arrayfield_partial_element():
    field = fields.ArrayField(fields.StructField('I'), stride=8)

    with pytest.raises(TruncatedException) as e:
        field.unpack(b'\x00' * 18)

    assert e.value.offset == 16
    assert e.value.expected == 4
    assert e.value.available == 2


class Pair(Record):
    key   = fields.StructField('H')
    value = fields.StructField('H')


def test_arrayfield_records():
    field = fields.ArrayField(Pair, stride=4)
    data = struct.pack('<6H', 1, 10, 2, 20, 1, 10)

    assert field.unpack(data) == {Pair(key=1, value=10), Pair(key=2, value=20)}


def test_arrayfield_records_with_key():
    field = fields.ArrayField(Pair, stride=4, key='key')
    data = struct.pack('<6H', 1, 10, 2, 20, 1, 11)

    assert field.unpack(data) == {
        1: Pair(key=1, value=11),
        2: Pair(key=2, value=20),
    }


class Pairs(Record):
    items = fields.ArrayField(Pair, stride=4, key='key')


def test_record_with_keyed_array_is_hashable():
    pairs = Pairs.unpack(struct.pack('<4H', 1, 10, 2, 20))

    assert hash(pairs) == hash(Pairs.unpack(struct.pack('<4H', 2, 20, 1, 10)))

    field = fields.ArrayField(Pairs, stride=8)
    data = struct.pack('<8H', 1, 10, 2, 20, 2, 20, 1, 10)

    assert field.unpack(data) == {pairs}


def test_arrayfield_error_locates_element():
    class Label(Record):
        text = fields.StringField(4)

    field = fields.ArrayField(Label, stride=4)

    with pytest.raises(InvalidEncodingException) as e:
        field.unpack(b'ok\x00\x00' + b'k\xff\x00\x00')

    assert e.value.chain == ['text', '1']
    assert e.value.offset == 5


def test_arrayfield_wrong_declarations():
    with pytest.raises(SchemaException):
        fields.ArrayField(fields.StructField('Q'), stride=4)

    with pytest.raises(SchemaException):
        fields.ArrayField(fields.StructField('I'), stride=0)

    with pytest.raises(SchemaException):
        fields.ArrayField(Pair, stride=4, key='missing')

    with pytest.raises(SchemaException):
        fields.ArrayField(fields.StructField('I'), stride=4, key='value')


def test_chunkfield():
    class Leaf(Record):
        tag = 0x42

    class Nested(Container):
        tag = 0x43

    assert fields.ChunkField(Leaf).type_id == 0x42
    assert not fields.ChunkField(Leaf).is_container
    assert fields.ChunkField(Nested).is_container


def test_chunkfield_wrong_tags():
    class Untagged(Record):
        a = fields.StructField('I')

    class Flagged(Record):
        tag = 0x80000001

    with pytest.raises(SchemaException):
        fields.ChunkField(Untagged)

    with pytest.raises(SchemaException):
        fields.ChunkField(Flagged)
