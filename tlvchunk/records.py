"""
Records are the structured values a chunked stream decodes into.

A Record describes the layout of the payload of a leaf chunk, a Container
describes which chunk fills which of its slots:

    class Point(Record):
        tag = 0x0001
        x = fields.StructField('I')
        y = fields.StructField('I')

    class Scene(Container):
        tag = 0x0100
        origin = fields.ChunkField(Point)

The table from type id to slot of a container is built once, when the class is
defined, and a malformed declaration fails there and then.
"""
import logging
from types import MappingProxyType
from typing import List, Tuple

from .enum import Compliant
from .meta import MetaRecord
from .fields import Field, ChunkField
from .exceptions import (
    TLVChunkException,
    TruncatedException,
    UnpackException,
    MagicException,
    SchemaException,
)


logger = logging.getLogger(__name__)


class Structure(object):

    tag = None
    is_container = False
    compliant = Compliant.NONE

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            if name not in self._meta.fields:
                raise AttributeError(f'{self.__class__.__name__} has no field named \'{name}\'')
            setattr(self, name, value)

    @classmethod
    def get_fields(cls) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, field) for each field.'''
        return [(_, cls._meta.field_map[_]) for _ in cls._meta.fields]

    def get_values(self) -> Tuple:
        return tuple(getattr(self, _) for _ in self._meta.fields)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented

        return self.get_values() == other.get_values()

    def __repr__(self):
        msg = []
        for field_name in self._meta.fields:
            msg.append('%s=%r' % (field_name, getattr(self, field_name)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))


class Record(Structure, metaclass=MetaRecord):
    '''Layout of the payload of a leaf chunk.

    Fields without an explicit offset are placed right after the previous one;
    the size of the record is the end of the furthest field unless indicated
    explicitly via "size" (a field without size makes the record variable).'''

    size = None

    @classmethod
    def prepare(cls):
        position = 0
        variable = False
        for name, field in cls.get_fields():
            if isinstance(field, ChunkField):
                raise SchemaException(f'{cls.__name__}.{name}: a record can\'t contain chunk slots')

            if variable:
                raise SchemaException(f'{cls.__name__}.{name}: no field can follow a variable sized one')

            if field.offset is None:
                field.offset = position

            if field.size is None:
                variable = True
                continue

            position = max(position, field.offset + field.size)

        if variable:
            cls._meta.size = None
        elif cls.size is not None:
            if cls.size < position:
                raise SchemaException(f'{cls.__name__} declares {cls.size} bytes but its fields need {position}')
            cls._meta.size = cls.size
        else:
            cls._meta.size = position

    def __hash__(self):
        # keyed arrays decode into dictionaries
        values = tuple(frozenset(_.items()) if isinstance(_, dict) else _ for _ in self.get_values())
        return hash((self.__class__, values))

    @classmethod
    def unpack(cls, data: bytes, compliant=Compliant.NONE) -> "Record":
        '''Build an instance from the payload.'''
        compliant |= cls.compliant
        size = cls._meta.size

        if size is not None and len(data) < size:
            raise TruncatedException(offset=0, expected=size, available=len(data))

        if size is not None and len(data) > size:
            logger.warning(f'{cls.__name__} expects {size} bytes, found {len(data)}')
            if compliant & Compliant.LENGTH:
                raise UnpackException(offset=0, expected=size, available=len(data))

        record = cls()
        for field_name, field in cls.get_fields():
            logger.debug('unpacking %s.%s' % (cls.__name__, field_name))
            try:
                value = field.unpack(data, compliant=compliant)
            except TLVChunkException as e:
                e.chain.append(field_name)
                raise
            setattr(record, field_name, value)

        if hasattr(record, 'validate'):
            ret = record.validate()
            if not ret:
                logger.warning(f'validation for record \'{cls.__name__}\' failed')
                if compliant & Compliant.MAGIC:
                    raise MagicException(chain=[])

        return record


class Container(Structure, metaclass=MetaRecord):
    '''Each slot is filled by the chunk having the tag of its class: slots that
    don't find a chunk stay None.'''

    is_container = True

    @classmethod
    def prepare(cls):
        table = {}
        for name, field in cls.get_fields():
            if not isinstance(field, ChunkField):
                raise SchemaException(f'{cls.__name__}.{name}: a container can contain only chunk slots')

            if field.type_id in table:
                raise SchemaException(
                    f'{cls.__name__}.{name}: type id 0x{field.type_id:08x} already used by \'{table[field.type_id]}\'')

            table[field.type_id] = name

        cls._meta.table = MappingProxyType(table)

    @classmethod
    def get_slot(cls, type_id: int):
        '''Return the couple (name, field) associated with the type id, None if unknown.'''
        name = cls._meta.table.get(type_id)
        if name is None:
            return None

        return name, cls._meta.field_map[name]
