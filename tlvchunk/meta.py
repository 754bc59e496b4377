import copy
import logging
from enum import Enum, auto


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()
    NETWORK       = auto()
    NATIVE        = auto()


class FieldDescriptor(object):
    """Wrapper around field access of a Record related class.

    Accessed from the class it returns the field itself, from an instance it
    returns the decoded value (or the default of the field if not decoded yet)."""

    def __init__(self, field_instance: "Field", field_name: str):
        self.field = field_instance
        self.field.name = field_name

    def __get__(self, instance, type=None):
        if instance is None:
            return self.field

        data = instance.__dict__

        if self.field.name not in data:
            data[self.field.name] = self.field.value_from_default()

        return data[self.field.name]

    def __set__(self, instance, value):
        instance.__dict__[self.field.name] = value


class FieldBase(object):

    def contribute_to_record(self, cls, name):
        if name in cls._meta.fields:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

        field = copy.copy(self)
        setattr(cls, name, FieldDescriptor(field, name))
        cls._meta.fields.append(name)
        cls._meta.field_map[name] = field


class Meta(object):
    """Class containing metadata about the record"""

    def __init__(self):
        self.fields = []
        self.field_map = {}
        # fixed size of the payload, None if variable
        self.size = None
        # type_id -> field name, used only by containers
        self.table = {}


class MetaRecord(type):

    def __new__(cls, names, bases, attrs):
        '''Fields are removed from the class namespace and installed as descriptors,
        in declaration order; then the class has the chance to validate and lay them out.'''
        declared = {_k: _v for _k, _v in attrs.items() if hasattr(_v, 'contribute_to_record')}
        new_attrs = {_k: _v for _k, _v in attrs.items() if _k not in declared}

        new_cls = super(MetaRecord, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaRecord)]
        for parent in parents:
            for obj_name in parent._meta.fields:
                parent._meta.field_map[obj_name].contribute_to_record(new_cls, obj_name)

        for obj_name, obj in declared.items():
            new_cls.add_to_class(obj_name, obj)

        new_cls.prepare()

        return new_cls

    def add_to_class(cls, name, value):
        logging.getLogger(__name__).debug('contribute_to_record() found for field \'%s\'' % name)
        value.contribute_to_record(cls, name)
