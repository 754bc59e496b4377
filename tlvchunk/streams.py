'''
Random access to the bytes of a source.

A DataReader reads blocks of data from arbitrary offsets. The root of the
hierarchy is a StreamDataReader that wraps the actual source, every other reader
is a BoundedDataReader, i.e. a view restricted to a contiguous range of its parent:
slicing never copies bytes, only an explicit read does.
'''
import io
import logging

from .exceptions import EndOfInputException, OutOfRangeException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/file object to
    uniform its properties: mainly we need a seek-able object
    with a read() that fills the requested size.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self.obj = obj
        self.owned = False

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __del__(self):
        self.close()

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.obj)

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        self.obj = open(self.obj, 'rb')
        self.owned = True

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def init_file(self):
        if not (hasattr(self.obj, 'read') and hasattr(self.obj, 'seek')):
            raise ValueError('\'%s\' is the wrong kind of source to use' % self.obj.__class__.__name__)

    def size(self):
        old_seek = self.obj.tell()
        size = self.obj.seek(0, io.SEEK_END)
        self.obj.seek(old_seek)

        return size

    def read_exactly(self, size):
        '''Read from the actual position until "size" bytes are obtained: short reads
        are retried and running out of data raises EndOfInputException.'''
        start = self.obj.tell()
        data = []
        total = 0
        while total < size:
            block = self.obj.read(size - total)
            if not block:
                raise EndOfInputException(offset=start, expected=size, available=total)
            data.append(block)
            total += len(block)

        return b''.join(data)

    def close(self):
        if self.owned:
            self.obj.close()


class DataReader(object):
    '''Interface for reading data blocks from arbitrary offsets.'''

    length = None

    @property
    def file_offset(self):
        '''Absolute position of the offset zero of this reader in the source.'''
        raise NotImplementedError(f"property {self.__class__.__name__}.file_offset not implemented")

    def read_at(self, offset, size):
        raise NotImplementedError(f"method {self.__class__.__name__}.read_at() not implemented")

    def check_range(self, offset, size):
        if self.length is None:
            return

        if offset > self.length or size > self.length - offset:
            raise OutOfRangeException(
                offset=self.file_offset + offset,
                expected=size,
                available=max(self.length - offset, 0),
            )

    def slice(self, offset, length):
        self.check_range(offset, length)

        return BoundedDataReader(self, offset, length)

    def read_all(self):
        '''Materialize the whole range.'''
        if self.length is None:
            raise ValueError(f'{self!r} has no known length')

        return self.read_at(0, self.length)


class StreamDataReader(DataReader):
    '''The root reader: it wraps a seekable source and uses the position at
    construction time as offset zero.'''

    def __init__(self, source):
        self.stream = source if isinstance(source, Stream) else Stream(source)
        self._file_offset = self.stream.tell()
        self.length = self.stream.size() - self._file_offset

    def __repr__(self):
        return '<%s(%r, offset=0x%x)>' % (self.__class__.__name__, self.stream, self._file_offset)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def file_offset(self):
        return self._file_offset

    def read_at(self, offset, size):
        self.stream.seek(self._file_offset + offset)

        return self.stream.read_exactly(size)

    def close(self):
        self.stream.close()


class BoundedDataReader(DataReader):
    '''Wraps a DataReader and limits the reads to a specified range (offset and length).'''

    def __init__(self, reader, base_offset, length):
        self.reader = reader
        self.base_offset = base_offset
        self.length = length

    def __repr__(self):
        return '<%s(offset=0x%x, length=0x%x)>' % (self.__class__.__name__, self.file_offset, self.length)

    def __len__(self):
        return self.length

    @property
    def file_offset(self):
        return self.reader.file_offset + self.base_offset

    def read_at(self, offset, size):
        self.check_range(offset, size)

        return self.reader.read_at(self.base_offset + offset, size)

    def slice(self, offset, length):
        '''The offsets are composed so that the new view points directly to
        our parent and not to us.'''
        self.check_range(offset, length)

        return BoundedDataReader(self.reader, self.base_offset + offset, length)
