"""
A Field describes where and how a value lives inside the payload of a leaf chunk:
each one knows its own offset and width, nothing is guessed from the type of the
value it produces.

The ChunkField instead is not a layout: it binds a slot of a container to the tag
of the chunks that fill it.
"""
import logging
import struct

from .enum import Compliant
from .meta import FieldBase, Endianess
from .exceptions import (
    TLVChunkException,
    TruncatedException,
    UnpackException,
    InvalidEncodingException,
    SchemaException,
)
from .core import CONTAINER_FLAG


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, offset=None, default=None, endianess=Endianess.LITTLE_ENDIAN):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = None
        self.offset = offset
        self.default = default
        self.endianess = endianess

    def __repr__(self):
        return '<%s(offset=%s, size=%s)>' % (self.__class__.__name__, self.offset, self.size)

    def value_from_default(self):
        return self.default

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def get_span(self, data: bytes) -> bytes:
        offset = self.offset or 0
        size = self.size
        if offset + size > len(data):
            raise TruncatedException(offset=offset, expected=size, available=max(len(data) - offset, 0))

        return data[offset:offset + size]

    def unpack(self, data: bytes, compliant=Compliant.NONE):
        raise NotImplementedError(f"method {self.__class__.__name__}.unpack() not implemented")


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module unpacking
    integers from bytes.
    """

    def __init__(self, format, default=0, **kw):
        self.format = format
        super().__init__(default=default, **kw)

    def get_format(self):
        return '%s%s' % ('<' if self.endianess == Endianess.LITTLE_ENDIAN else '>', self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def unpack(self, data: bytes, compliant=Compliant.NONE):
        raw = self.get_span(data)
        try:
            return struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            self.logger.error(e)
            raise UnpackException(offset=self.offset, expected=self.size, available=len(raw)) from e


class StringField(Field):
    """Fixed width text, terminated by the first NUL byte (if any) and
    decoded strictly."""

    def __init__(self, n, encoding='utf-8', default='', **kw):
        if n <= 0:
            raise ValueError(f"StringField must have a positive length, not {n}")

        self.length = n
        self.encoding = encoding

        super().__init__(default=default, **kw)

    def __len__(self):
        return self.length

    def _get_size(self):
        return self.length

    def unpack(self, data: bytes, compliant=Compliant.NONE):
        raw = self.get_span(data)
        end = raw.find(b'\x00')
        if end == -1:
            end = len(raw)

        try:
            return raw[:end].decode(self.encoding, errors='strict')
        except UnicodeDecodeError as e:
            self.logger.error(e)
            raise InvalidEncodingException(offset=(self.offset or 0) + e.start) from e


class ArrayField(Field):
    '''Unpack the remaining part of the payload as elements of fixed stride.

    The element can be a Field, that is read at the start of each stride, or a
    Record class. The values are collected into a frozenset so that duplicates
    disappear, or, indicating the name of a field of the element via "key", into
    a dictionary indexed by that field (the last element wins).
    '''

    def __init__(self, element, stride, key=None, **kw):
        self.element = element
        self.stride = stride
        self.key = key

        if stride <= 0:
            raise SchemaException(f'the stride of {self.__class__.__name__} must be positive')

        if self.element_size > stride:
            raise SchemaException(f'element of {self.element_size} bytes doesn\'t fit into a stride of {stride} bytes')

        meta = getattr(element, '_meta', None)
        if key is not None and (meta is None or key not in meta.fields):
            raise SchemaException(f'{element!r} has no field named \'{key}\' to use as key')

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%r, stride=%d)>' % (self.__class__.__name__, self.element, self.stride)

    @property
    def element_size(self):
        if isinstance(self.element, Field):
            return (self.element.offset or 0) + self.element.size

        return self.element._meta.size or self.stride

    def value_from_default(self):
        return frozenset() if self.key is None else {}

    def _get_size(self):
        '''the size is defined by the payload'''
        return None

    def unpack_element(self, raw: bytes, compliant):
        return self.element.unpack(raw, compliant=compliant)

    def unpack(self, data: bytes, compliant=Compliant.NONE):
        offset = self.offset or 0
        payload = data[offset:]

        # the last stride can be shorter, as long as it holds the element
        n, remainder = divmod(len(payload), self.stride)
        if remainder >= self.element_size:
            n += 1
        elif remainder:
            raise TruncatedException(
                offset=offset + n * self.stride, expected=self.element_size, available=remainder)

        elements = []
        for index in range(n):
            start = index * self.stride
            raw = payload[start:start + self.element_size]
            try:
                elements.append(self.unpack_element(raw, compliant))
            except TLVChunkException as e:
                e.chain.append(str(index))
                e.rebase(offset + start)
                raise

        self.logger.debug('unpacked %d elements from %d bytes' % (n, len(payload)))

        if self.key is None:
            return frozenset(elements)

        return {getattr(_, self.key): _ for _ in elements}


class ChunkField(FieldBase):
    '''Slot of a container filled by the chunks having the tag of the given class,
    that is a Record (for leaf chunks) or a Container (for nested containers).'''

    def __init__(self, record_cls, default=None):
        tag = getattr(record_cls, 'tag', None)

        if not isinstance(tag, int) or isinstance(tag, bool):
            raise SchemaException(f'{record_cls!r} doesn\'t declare an integer tag')

        if tag & CONTAINER_FLAG or tag < 0:
            raise SchemaException(f'tag 0x{tag:x} of {record_cls.__name__} is not a 31 bits type id')

        self.name = None
        self.record_cls = record_cls
        self.type_id = tag
        self.default = default

    def __repr__(self):
        return '<%s(%s, type_id=0x%08x)>' % (self.__class__.__name__, self.record_cls.__name__, self.type_id)

    @property
    def is_container(self):
        return self.record_cls.is_container

    def value_from_default(self):
        return self.default
