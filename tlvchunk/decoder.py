'''
Decoding of chunked streams into records.

The decoder pulls chunks one at a time and dispatches each of them using the
table of the container: unknown type ids are skipped, leaf chunks are unpacked
into the record of their slot and nested containers are decoded recursively
with the very same function over their children.
'''
import logging
from typing import Iterable, Iterator, Type, Union

from .core import BaseChunk, ChunkReader, ContainerChunk
from .enum import Compliant
from .records import Container, Record
from .streams import DataReader
from .exceptions import (
    TLVChunkException,
    ChunkKindException,
    UnknownTagException,
)


logger = logging.getLogger(__name__)


def _iter_chunks(chunks) -> Iterable[BaseChunk]:
    if isinstance(chunks, ContainerChunk):
        return chunks.children()

    if isinstance(chunks, DataReader):
        return ChunkReader(chunks)

    return chunks


def decode_chunk(record_cls: Type[Record], chunk: BaseChunk, compliant=Compliant.NONE) -> Record:
    '''Unpack the payload of a leaf chunk using the layout of "record_cls".'''
    if chunk.is_container:
        raise ChunkKindException(offset=chunk.header_offset)

    data = chunk.raw
    try:
        return record_cls.unpack(data, compliant=compliant)
    except TLVChunkException as e:
        e.rebase(chunk.file_offset)
        raise


def decode_container(
        container_cls: Type[Container],
        chunks: Union[ChunkReader, ContainerChunk, DataReader, Iterable[BaseChunk]],
        compliant=Compliant.NONE) -> Container:
    '''Fill a new instance of "container_cls" with the chunks: the last chunk
    with a given type id wins.'''
    compliant |= container_cls.compliant
    container = container_cls()

    for chunk in _iter_chunks(chunks):
        slot = container_cls.get_slot(chunk.type_id)

        if slot is None:
            logger.debug('skipping unknown %r in %s' % (chunk, container_cls.__name__))
            if compliant & Compliant.TAG:
                raise UnknownTagException(offset=chunk.header_offset)
            continue

        name, field = slot

        if field.is_container != chunk.is_container:
            raise ChunkKindException(chain=[name], offset=chunk.header_offset)

        logger.debug('decoding %r into %s.%s' % (chunk, container_cls.__name__, name))

        try:
            if field.is_container:
                value = decode_container(field.record_cls, chunk.children(), compliant=compliant)
            else:
                value = decode_chunk(field.record_cls, chunk, compliant=compliant)
        except TLVChunkException as e:
            e.chain.append(name)
            raise

        setattr(container, name, value)

    return container


def iter_containers(container_cls: Type[Container], source, compliant=Compliant.NONE) -> Iterator[Container]:
    '''Walk a top level stream and decode each container having the tag of "container_cls".'''
    if container_cls.tag is None:
        raise ValueError(f'{container_cls.__name__} has no tag to look for')

    reader = source if isinstance(source, ChunkReader) else ChunkReader(source)

    try:
        for chunk in reader:
            if not chunk.is_container or chunk.type_id != container_cls.tag:
                logger.debug('ignoring %r' % chunk)
                continue

            yield decode_container(container_cls, chunk.children(), compliant=compliant)
    finally:
        # a reader handed by the caller stays open
        if reader is not source:
            reader.close()
