import inspect
import logging
from typing import List


def get_root_from_chunk(instance):
    return get_instance_from_chunk(instance, condition=lambda x: x.father is None)


def get_instance_from_class_name(instance, name):
    return get_instance_from_chunk(instance, condition=lambda x: x.__class__.__name__ == name)


def get_instance_from_chunk(instance, condition):
    '''Walk up the fathers of instance (itself included) until condition holds.'''
    while instance is not None:
        if condition(instance):
            return instance
        instance = instance.father

    raise AttributeError('no field satisfying the condition in the hierarchy')


class Dependency:
    '''This makes the relation between fields possible.

    A field's size, count or starting point can be tied to the value of
    another field, so that

        class Simple(Chunk):
            length = fields.StructField('I')
            data = fields.StringField(Dependency('.length'))

    reads as many bytes into "data" as indicated by "length".

    The syntax of the expression is inspired by module resolution, the
    first char decides where the resolution starts:

     - '.' from the father of the field (i.e. a field at the same level)
     - '@' the first component is the name of the class of an ancestor
     - anything else starts from the root chunk

    If the last component resolves to a method, it's called and its return
    value is used.
    '''
    def __init__(self, expression):
        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        fields_path: List[str] = self.expression.split('.')
        # '.length'.split(".") -> ['', 'length']
        # 'length'.split(".") -> ['length']

        if fields_path[0] == '':
            field = instance.father
            fields_path = fields_path[1:]
        elif fields_path[0].startswith('@'):
            field = get_instance_from_class_name(instance, fields_path[0][1:])
            fields_path = fields_path[1:]
        else:
            field = get_root_from_chunk(instance)

        for component_name in fields_path:
            field = getattr(field, component_name)

        return field

    def _do_resolve(self, field):
        if inspect.ismethod(field):
            return field()

        return getattr(field, 'value', field)

    def resolve(self, instance):
        '''Resolve the expression with respect to the field passed as argument.'''
        value = self._do_resolve(self.resolve_field(instance))
        self.logger.debug('%r resolved as %r', self, value)

        return value


class DeltaDependency(Dependency):
    '''The resolved value minus a constant, e.g. a payload whose first bytes
    have already been consumed by other fields.'''

    def __init__(self, delta, expression):
        super().__init__(expression)
        self._delta = delta

    def resolve(self, instance):
        return super().resolve(instance) - self._delta


class RatioDependency(DeltaDependency):
    '''Number of fixed-size elements fitting in the resolved length (after
    removing "delta" bytes of preamble).'''

    def __init__(self, ratio, expression, delta=0):
        super().__init__(delta, expression)
        self._ratio = ratio

    def resolve(self, instance):
        return super().resolve(instance) // self._ratio


class PropertyDescriptor(object):
    """Attribute of a field that can be a plain value or a Dependency,
    resolved each time it's read."""

    def __init__(self, name: str, _type: type):
        self.name = name
        self.type = _type

    def __get__(self, instance, owner):
        if instance is None:
            return self

        data = instance.__dict__
        if self.name not in data:
            raise AttributeError(f"no '{self.name}' here!")

        value = data[self.name]

        if isinstance(value, Dependency):
            return value.resolve(instance)

        return value

    def __set__(self, instance, value):
        if not isinstance(value, (self.type, Dependency)):
            raise ValueError(f"'{self.name}' must be of type {self.type.__name__} or a Dependency")

        instance.__dict__[self.name] = value
