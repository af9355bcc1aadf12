import io

import pytest

from blorb.exceptions import BlorbIOError, TruncatedChunk
from blorb.streams import Stream


def test_stream_from_bytes():
    stream = Stream(b'kebab')

    assert stream.read(2) == b'ke'
    assert stream.tell() == 2

    stream.seek(4)
    assert stream.read_exact(1) == b'b'

    assert Stream(bytearray(b'abc')).read(3) == b'abc'


def test_stream_from_path(tmp_path):
    path = tmp_path / 'data.bin'
    path.write_bytes(b'\x01\x02\x03')

    stream = Stream(path)
    assert stream.read_exact(3) == b'\x01\x02\x03'

    stream.close()
    assert stream.obj.closed

    stream = Stream(str(path))
    assert stream.read(1) == b'\x01'
    stream.close()


def test_stream_missing_path(tmp_path):
    with pytest.raises(BlorbIOError) as excinfo:
        Stream(str(tmp_path / 'missing.blb'))

    assert isinstance(excinfo.value.error, FileNotFoundError)


def test_stream_does_not_close_file_objects():
    obj = io.BytesIO(b'kebab')

    stream = Stream(obj)
    stream.close()
    del stream

    assert not obj.closed
    assert obj.read() == b'kebab'


def test_stream_rejects_wrong_objects():
    with pytest.raises(TypeError):
        Stream(42)

    with pytest.raises(ValueError):
        Stream(b'kebab').seek('start')


def test_read_exact():
    stream = Stream(b'\x00' * 6)
    stream.seek(4)

    with pytest.raises(TruncatedChunk) as excinfo:
        stream.read_exact(4)

    assert 'expected 4 bytes at offset 0x4 but only 2 are available' in str(excinfo.value)


def test_bookmark():
    stream = Stream(b'0123456789')
    stream.seek(3)

    with stream.bookmark():
        stream.seek(7)
        assert stream.read(1) == b'7'

    assert stream.tell() == 3

    # the position comes back also when the block fails
    with pytest.raises(TruncatedChunk):
        with stream.bookmark():
            stream.read_exact(100)

    assert stream.tell() == 3


def test_io_errors_are_wrapped():
    class Broken(io.BytesIO):
        def read(self, size=-1):
            raise OSError('device not ready')

    with pytest.raises(BlorbIOError) as excinfo:
        Stream(Broken(b'kebab')).read_exact(4)

    assert isinstance(excinfo.value.error, OSError)
    assert excinfo.value.__cause__ is excinfo.value.error
