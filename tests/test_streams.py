import io

import pytest

from tlvchunk.exceptions import EndOfInputException, OutOfRangeException
from tlvchunk.streams import Stream, StreamDataReader, BoundedDataReader


DATA = bytes(range(0x10))


def test_stream_reader_from_bytes():
    reader = StreamDataReader(DATA)

    assert reader.file_offset == 0
    assert reader.length == len(DATA)
    assert reader.read_at(4, 3) == b'\x04\x05\x06'
    assert reader.read_at(0, 0) == b''


def test_stream_reader_uses_actual_position():
    f = io.BytesIO(DATA)
    f.seek(6)

    reader = StreamDataReader(f)

    assert reader.file_offset == 6
    assert reader.length == len(DATA) - 6
    assert reader.read_at(0, 2) == b'\x06\x07'
    assert reader.read_at(2, 2) == b'\x08\x09'


def test_stream_reader_end_of_input():
    reader = StreamDataReader(b'abc')

    with pytest.raises(EndOfInputException) as e:
        reader.read_at(1, 4)

    assert e.value.offset == 1
    assert e.value.expected == 4
    assert e.value.available == 2


def test_stream_reader_fills_short_reads(trickle_io):
    reader = StreamDataReader(trickle_io(DATA))

    assert reader.read_at(3, 8) == DATA[3:11]


def test_stream_reader_from_path(tmp_path):
    path = tmp_path / 'chunks.bin'
    path.write_bytes(DATA)

    with StreamDataReader(str(path)) as reader:
        assert reader.read_at(0xe, 2) == b'\x0e\x0f'

    assert reader.stream.obj.closed


def test_stream_reader_leaves_file_objects_open():
    f = io.BytesIO(DATA)

    reader = StreamDataReader(f)
    reader.close()

    assert not f.closed


def test_stream_wrong_source():
    with pytest.raises(ValueError):
        Stream(42)


def test_bounded_reader():
    root = StreamDataReader(DATA)
    view = root.slice(2, 4)

    assert isinstance(view, BoundedDataReader)
    assert len(view) == 4
    assert view.file_offset == 2
    assert view.read_at(0, 4) == b'\x02\x03\x04\x05'
    assert view.read_all() == b'\x02\x03\x04\x05'
    assert view.read_at(4, 0) == b''


@pytest.mark.parametrize('offset', range(0, 7))
@pytest.mark.parametrize('size', range(0, 7))
def test_bounded_reader_bounds(offset, size):
    view = StreamDataReader(DATA).slice(2, 4)

    if offset + size <= 4:
        assert view.read_at(offset, size) == DATA[2 + offset:2 + offset + size]
        assert view.slice(offset, size).read_all() == DATA[2 + offset:2 + offset + size]
    else:
        with pytest.raises(OutOfRangeException):
            view.read_at(offset, size)
        with pytest.raises(OutOfRangeException):
            view.slice(offset, size)


def test_bounded_reader_error_context():
    f = io.BytesIO(DATA)
    f.seek(1)
    view = StreamDataReader(f).slice(1, 4)

    with pytest.raises(OutOfRangeException) as e:
        view.read_at(3, 4)

    # offsets are absolute in the source
    assert e.value.offset == 5
    assert e.value.expected == 4
    assert e.value.available == 1


def test_bounded_reader_slice_composes_offsets():
    root = StreamDataReader(DATA)
    view = root.slice(2, 8)
    sub = view.slice(3, 2)

    assert sub.reader is root
    assert sub.base_offset == 5
    assert sub.file_offset == 5
    assert sub.read_all() == b'\x05\x06'


def test_root_slice_is_bounded():
    root = StreamDataReader(DATA)

    with pytest.raises(OutOfRangeException):
        root.slice(0xc, 5)


def test_slice_doesnt_read(counting_io):
    source = counting_io(DATA)
    root = StreamDataReader(source)

    view = root.slice(1, 10).slice(2, 5).slice(1, 1)

    assert source.reads == 0
    assert view.read_all() == b'\x04'
    assert source.reads == 1
