"""
Class-level machinery of Chunk: the metaclass records the fields declared
in the class body and replaces each one with a descriptor, so that every
instance works on its own copy of the declared field.
"""
import copy


class FieldBase(object):

    def create(self, father):
        '''Copy of this field to be used inside father.'''
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class FieldDescriptor(object):

    def __init__(self, field):
        self.field = field

    def __get__(self, instance, owner=None):
        if instance is None:
            return self

        name = self.field.name
        if name not in instance.__dict__:
            instance.__dict__[name] = self.field.create(father=instance)

        return instance.__dict__[name]

    def __set__(self, instance, value):
        self.__get__(instance).value = value


class MetaChunk(type):
    '''Keep in "_fields" the names of the fields, the inherited ones first
    and then the ones declared in the class body, in declaration order.'''

    def __new__(mcs, name, bases, attrs):
        declared = [(_name, _) for _name, _ in attrs.items() if isinstance(_, FieldBase)]
        for field_name, _ in declared:
            del attrs[field_name]

        cls = super().__new__(mcs, name, bases, attrs)

        fields = []
        for base in bases:
            fields.extend(_ for _ in getattr(base, '_fields', ()) if _ not in fields)

        for field_name, field in declared:
            # a field can't shadow an inherited field or an attribute of Field itself
            if getattr(cls, field_name, None) is not None:
                raise AttributeError(f'field {field_name} is already present in class {name}')

            field.name = field_name
            setattr(cls, field_name, FieldDescriptor(field))
            fields.append(field_name)

        cls._fields = fields

        return cls
