"""
Core module for the framing of a chunked stream

A stream is a sequence of chunks, each one composed by an 8 bytes header
(type tag and length, both little-endian u32) followed by the payload.
The most significant bit of the type tag tells if the payload is itself a
sequence of chunks (a container) or opaque data (a leaf).
"""
import logging
from enum import Enum, auto
from typing import Iterator, NamedTuple, Optional

from bitstring import Bits

from .streams import DataReader, StreamDataReader
from .exceptions import (
    EndOfInputException,
    TruncatedException,
)


HEADER_SIZE = 8
CONTAINER_FLAG = 1 << 31


logger = logging.getLogger(__name__)


class ChunkKind(Enum):
    LEAF      = auto()
    CONTAINER = auto()


class ChunkHeader(NamedTuple):
    type_tag: int
    length: int

    @classmethod
    def unpack(cls, raw: bytes) -> "ChunkHeader":
        type_tag, length = Bits(raw).unpack('uintle:32, uintle:32')
        return cls(type_tag, length)

    @property
    def is_container(self) -> bool:
        # bit 31 is the first one when the tag is seen as a 32 bits big-endian value
        return Bits(uint=self.type_tag, length=32)[0]

    @property
    def type_id(self) -> int:
        return Bits(uint=self.type_tag, length=32)[1:].uint

    @property
    def kind(self) -> ChunkKind:
        return ChunkKind.CONTAINER if self.is_container else ChunkKind.LEAF


class BaseChunk(object):
    '''A chunk found in a stream: it doesn't own any data, the payload is a view
    into the reader it was framed from.'''
    kind: ChunkKind

    def __init__(self, type_id: int, payload: DataReader):
        self.type_id = type_id
        self.payload = payload

    def __repr__(self):
        return '<%s(type_id=0x%08x, offset=0x%x, length=0x%x)>' % (
            self.__class__.__name__,
            self.type_id,
            self.file_offset,
            self.length,
        )

    @property
    def is_container(self) -> bool:
        return self.kind == ChunkKind.CONTAINER

    @property
    def length(self) -> int:
        return self.payload.length

    @property
    def file_offset(self) -> int:
        '''Absolute offset of the payload'''
        return self.payload.file_offset

    @property
    def header_offset(self) -> int:
        return self.payload.file_offset - HEADER_SIZE

    @property
    def raw(self) -> bytes:
        return self.payload.read_all()


class LeafChunk(BaseChunk):
    kind = ChunkKind.LEAF


class ContainerChunk(BaseChunk):
    kind = ChunkKind.CONTAINER

    def children(self) -> "ChunkReader":
        '''The payload is a stream on its own, so it's framed by a brand new reader.'''
        return ChunkReader(self.payload)


class ChunkReader(object):
    '''Walks a reader front to back producing one chunk at a time.

    The only state is the position of the next header: a reader cannot
    be rewound, create a new one over the same data to restart.'''

    def __init__(self, reader):
        # a reader built here from a raw source is ours to close
        self.owned = not isinstance(reader, DataReader)
        self.reader = StreamDataReader(reader) if self.owned else reader
        self.next_position = 0
        self.logger = logging.getLogger(f"{self.__module__}.{self.__class__.__name__}")

    def __repr__(self):
        return '<%s(%r, next_position=0x%x)>' % (self.__class__.__name__, self.reader, self.next_position)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self.owned:
            self.reader.close()

    def __iter__(self) -> Iterator[BaseChunk]:
        return self

    def __next__(self) -> BaseChunk:
        chunk = self.try_next()
        if chunk is None:
            raise StopIteration

        return chunk

    def get_chunks(self) -> Iterator[BaseChunk]:
        while (chunk := self.try_next()) is not None:
            yield chunk

    def _remaining(self) -> Optional[int]:
        if self.reader.length is None:
            return None

        return self.reader.length - self.next_position

    def _read_header(self) -> Optional[ChunkHeader]:
        remaining = self._remaining()

        if remaining == 0:
            return None

        if remaining is not None and remaining < HEADER_SIZE:
            raise TruncatedException(
                offset=self.reader.file_offset + self.next_position,
                expected=HEADER_SIZE,
                available=remaining,
            )

        try:
            raw = self.reader.read_at(self.next_position, HEADER_SIZE)
        except EndOfInputException as e:
            # nothing at all after the last chunk: the stream is simply over
            if e.available == 0:
                return None
            raise TruncatedException(offset=e.offset, expected=HEADER_SIZE, available=e.available) from e

        return ChunkHeader.unpack(raw)

    def try_next(self) -> Optional[BaseChunk]:
        '''Return the next chunk or None if the stream is over.'''
        header = self._read_header()

        if header is None:
            self.logger.debug('end of chunks at 0x%x' % (self.reader.file_offset + self.next_position))
            return None

        data_start = self.next_position + HEADER_SIZE
        remaining = self._remaining()

        if remaining is not None and header.length > remaining - HEADER_SIZE:
            raise TruncatedException(
                offset=self.reader.file_offset + data_start,
                expected=header.length,
                available=remaining - HEADER_SIZE,
            )

        payload = self.reader.slice(data_start, header.length)
        self.next_position = data_start + header.length

        chunk_cls = ContainerChunk if header.is_container else LeafChunk
        chunk = chunk_cls(header.type_id, payload)

        self.logger.debug('framed %r' % chunk)

        return chunk

    def read_next_chunk(self) -> BaseChunk:
        '''Like try_next() but the end of the stream is signalled with EndOfInputException.'''
        chunk = self.try_next()
        if chunk is None:
            raise EndOfInputException(
                offset=self.reader.file_offset + self.next_position,
                expected=HEADER_SIZE,
                available=0,
            )

        return chunk
