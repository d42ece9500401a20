# Copyright (c) 2025 NASK. All rights reserved.

"""
The field inspector: declaration and resolution of transfer object
fields.

Fields are declared with class-level annotations (as in the case of
data classes), optionally with a `Field` instance as the class
attribute value -- to specify a default, a custom key or other
per-field options:

>>> import datetime
>>> from typing import Optional
>>> from transferobj.transfer_object import TransferObject
>>> class EventDto(TransferObject):
...     title: str
...     priority: int = 3
...     createdAt: Optional[datetime.datetime]
...     extra_info: dict = Field(default_factory=dict, opaque=True)
...
>>> [(fd.name, fd.key, fd.value_type.kind.name) for fd in fields(EventDto)]
[('title', 'title', 'LEAF'), ('priority', 'priority', 'LEAF'), ('createdAt', 'createdAt', 'DATETIME'), ('extra_info', 'extraInfo', 'LEAF')]
>>> event = EventDto(title='Meeting')
>>> event.title, event.priority, event.createdAt, event.extra_info
('Meeting', 3, None, {})

Fields are registered when a subclass is created; their types are
resolved -- once per class -- when the field descriptors are needed
for the first time (so that forward references can be used).
"""

import collections.abc
import dataclasses
import datetime
import enum
import inspect
import re
import threading
import types
import typing
from typing import (
    Any,
    Callable,
    ClassVar,
    Optional,
    Union,
)

from transferobj.class_helpers import (
    attr_repr,
    find_accessor,
    get_class_name,
)
from transferobj.exceptions import FieldResolutionError
from transferobj.log_helpers import get_logger
from transferobj.naming import to_camel


__all__ = [
    'NO_DEFAULT',
    'Field',
    'ValueKind',
    'ValueType',
    'FieldDescriptor',
    'BaseTransferObject',
    'fields',
    'resolve_value_type',
    'library_base_classes',
]


LOGGER = get_logger(__name__)


class _NoDefault:
    def __repr__(self):
        return 'NO_DEFAULT'

NO_DEFAULT = _NoDefault()


#
# Field declaration
#

class Field:

    """
    The descriptor of a transfer object field.

    Instances are created automatically for annotated class attributes;
    a `Field` can also be created explicitly -- to specify any of the
    following options.

    Args/kwargs:
        `type` (optional):
            The declared type of the field (needed only if the class
            attribute is not annotated).

    Kwargs:
        `default` (optional):
            The value of the field when it has not been set (if neither
            `default` nor `default_factory` is given, it is `None`).
            Unhashable (mutable) defaults, such as lists or dicts, are
            rejected with `ValueError` -- use `default_factory` instead.
        `default_factory` (optional):
            A no-argument callable; its result becomes the field value
            when the field is read before being set.
        `key` (optional):
            The key of the field in dicts produced by `to_dict()`
            (default: the camelCase version of the attribute name).
        `opaque` (default: False):
            If true, keys inside the (structured) value of the field are
            never renamed (neither by `from_dict()` nor by the
            `to_snake_case_*()` methods).
        `entity_type` (optional):
            The target type (a class or a dotted import path) for
            `to_entity()` when the field's value is a transfer object
            (or, for a collection, the target type of its elements).
    """

    def __init__(self, type=None, *,
                 default=NO_DEFAULT,
                 default_factory=None,
                 key=None,
                 opaque=False,
                 entity_type=None):
        if default is not NO_DEFAULT and default_factory is not None:
            raise ValueError('cannot specify both `default` and `default_factory`')
        if default is not NO_DEFAULT and default.__class__.__hash__ is None:
            raise ValueError('mutable default {!a} (of type {}) is not allowed: '
                             'use `default_factory`'.format(
                                 default, default.__class__.__qualname__))
        self.name = None
        self.type = type
        self.default = default
        self.default_factory = default_factory
        self.key = key
        self.opaque = opaque
        self.entity_type = entity_type

    __repr__ = attr_repr('name', 'type', 'default', 'key', 'opaque', 'entity_type')

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance.__dict__[self.name]
        except KeyError:
            pass
        if self.default_factory is not None:
            return instance.__dict__.setdefault(self.name, self.default_factory())
        if self.default is NO_DEFAULT:
            return None
        return self.default

    def __set__(self, instance, value):
        instance.__dict__[self.name] = value

    def __delete__(self, instance):
        instance.__dict__.pop(self.name, None)


#
# Resolved field types
#

class ValueKind(enum.Enum):
    LEAF = 'leaf'
    TRANSFER_OBJECT = 'transfer_object'
    COLLECTION = 'collection'
    DATETIME = 'datetime'
    SEQUENCE = 'sequence'
    MAPPING = 'mapping'


@dataclasses.dataclass(frozen=True)
class ValueType:

    """
    A resolved declared type of a field (or of an item of a field's
    sequence/mapping value).

    * `kind` -- a `ValueKind` member,
    * `py_type` -- the actual class (for `TRANSFER_OBJECT`, `COLLECTION`
      and `DATETIME`: the declared class; for `SEQUENCE`: `list` or
      `tuple`; for `MAPPING`: `dict`; for `LEAF`: the declared class or
      `None`),
    * `item_type` -- for `SEQUENCE`/`MAPPING`: the `ValueType` of the
      items/values,
    * `nullable` -- whether `None` was allowed explicitly (`Optional`).
    """

    kind: ValueKind
    py_type: Optional[type] = None
    item_type: Optional['ValueType'] = None
    nullable: bool = False


_LEAF = ValueType(ValueKind.LEAF)

_SEQUENCE_ORIGINS = frozenset({
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
})
_MAPPING_ORIGINS = frozenset({
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
})
_UNION_ORIGINS = frozenset({Union, types.UnionType})
_NoneType = type(None)


def resolve_value_type(declared_type, root_type=None):
    """
    Resolve the given declared type to a `ValueType`.

    Args:
        `declared_type`: a type or a `typing` construct.

    Kwargs:
        `root_type` (default: `BaseTransferObject`):
            The class whose subclasses are treated as transfer objects.

    Raises:
        `FieldResolutionError` if the argument does not denote a type.

    >>> resolve_value_type(int)
    ValueType(kind=<ValueKind.LEAF: 'leaf'>, py_type=<class 'int'>, item_type=None, nullable=False)
    >>> resolve_value_type(Optional[datetime.datetime]).kind
    <ValueKind.DATETIME: 'datetime'>
    >>> vt = resolve_value_type(dict[str, list[datetime.datetime]])
    >>> vt.kind, vt.item_type.kind, vt.item_type.item_type.kind
    (<ValueKind.MAPPING: 'mapping'>, <ValueKind.SEQUENCE: 'sequence'>, <ValueKind.DATETIME: 'datetime'>)
    >>> resolve_value_type(typing.TypeVar('T'))   # doctest: +ELLIPSIS
    Traceback (most recent call last):
      ...
    transferobj.exceptions.FieldResolutionError: ~T does not denote a type...
    """
    if root_type is None:
        root_type = BaseTransferObject
    if declared_type is Any:
        return _LEAF
    if declared_type is None or declared_type is _NoneType:
        raise FieldResolutionError(
            declared_type,
            public_message='None is not a valid field type.')
    supertype = getattr(declared_type, '__supertype__', None)
    if supertype is not None:
        # `typing.NewType()`-made type
        return resolve_value_type(supertype, root_type)
    origin = typing.get_origin(declared_type)
    args = typing.get_args(declared_type)
    if origin in _UNION_ORIGINS:
        non_none_args = [arg for arg in args if arg is not _NoneType]
        if len(non_none_args) == 1:
            resolved = resolve_value_type(non_none_args[0], root_type)
        else:
            resolved = _LEAF
        return dataclasses.replace(resolved, nullable=(len(non_none_args) < len(args)))
    if origin in _SEQUENCE_ORIGINS:
        return ValueType(
            ValueKind.SEQUENCE,
            py_type=list,
            item_type=(resolve_value_type(args[0], root_type) if args else _LEAF))
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return ValueType(
            ValueKind.SEQUENCE,
            py_type=tuple,
            item_type=resolve_value_type(args[0], root_type))
    if origin in _MAPPING_ORIGINS:
        return ValueType(
            ValueKind.MAPPING,
            py_type=dict,
            item_type=(resolve_value_type(args[1], root_type) if len(args) == 2 else _LEAF))
    if origin is not None:
        # e.g., `Literal[...]`, `Callable[...]`, `tuple[int, str]`
        return _LEAF
    if isinstance(declared_type, type):
        if issubclass(declared_type, root_type):
            if issubclass(declared_type, collections.abc.Collection):
                return ValueType(ValueKind.COLLECTION, py_type=declared_type)
            return ValueType(ValueKind.TRANSFER_OBJECT, py_type=declared_type)
        if issubclass(declared_type, datetime.datetime):
            return ValueType(ValueKind.DATETIME, py_type=declared_type)
        return ValueType(ValueKind.LEAF, py_type=declared_type)
    raise FieldResolutionError(
        declared_type,
        public_message='{!a} does not denote a type.'.format(declared_type))


#
# Field descriptors (resolved schema)
#

@dataclasses.dataclass(frozen=True)
class FieldDescriptor:

    """
    The resolved metadata of a transfer object field.

    `lookup_key` is the camelCase form of `key`; input keys (renamed
    to camelCase) are matched against it.

    The `assign` callable -- `assign(instance, value)` -- sets the
    field's value, using the setter method (if the class defines one:
    `set<PascalName>()` or `set_<snake_name>()`, looked up by the
    field name or, if not found, by the key) or the field itself.
    """

    name: str
    key: str
    declared_type: Any
    value_type: ValueType
    opaque: bool = False
    entity_type: Any = None
    setter_name: Optional[str] = None
    lookup_key: Optional[str] = None
    assign: Callable[[Any, Any], None] = dataclasses.field(default=None, compare=False, repr=False)

    @property
    def is_nested_transfer_object(self) -> bool:
        return self.value_type.kind in (ValueKind.TRANSFER_OBJECT, ValueKind.COLLECTION)

    @property
    def is_datetime(self) -> bool:
        return self.value_type.kind is ValueKind.DATETIME

    def get(self, instance):
        return getattr(instance, self.name)


#: Names of the modules whose classes' methods are never
#: considered field accessors (getters/setters).
LIBRARY_BASE_MODULES = frozenset({
    'transferobj.fields',
    'transferobj.transfer_object',
    'transferobj.collection',
})


def library_base_classes(cls):
    return tuple(
        klass for klass in inspect.getmro(cls)
        if klass.__module__ in LIBRARY_BASE_MODULES)


_CLASS_VAR_STR_REGEX = re.compile(r'\A\s*(?:typing\.)?ClassVar\b')


def _is_class_var(annotation):
    if isinstance(annotation, str):
        return bool(_CLASS_VAR_STR_REGEX.match(annotation))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _get_own_annotations(cls):
    try:
        return inspect.get_annotations(cls)
    except NameError:
        # (Python 3.14+, where annotations are evaluated lazily: they
        # may refer to names that are not defined yet, e.g., the class
        # being created)
        import annotationlib
        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)


def _declare_fields(cls):
    own_annotations = _get_own_annotations(cls)
    declared_names = []
    for name, annotation in own_annotations.items():
        if name.startswith('_') or _is_class_var(annotation):
            continue
        attr = cls.__dict__.get(name, NO_DEFAULT)
        if not isinstance(attr, Field):
            field = Field(default=attr)
            field.__set_name__(cls, name)
            setattr(cls, name, field)
        declared_names.append(name)
    for name, attr in list(vars(cls).items()):
        if not isinstance(attr, Field) or name in own_annotations:
            continue
        if name.startswith('_'):
            raise FieldResolutionError(
                name,
                public_message='Field name {!a} (in {}) must not start with '
                               'an underscore.'.format(name, cls.__qualname__))
        if attr.type is None:
            raise FieldResolutionError(
                name,
                public_message='Field {!a} (in {}) has no type annotation and '
                               'no explicit type.'.format(name, cls.__qualname__))
        declared_names.append(name)
    cls._declared_field_names = tuple(declared_names)


def _iter_all_field_names(cls):
    seen = set()
    for klass in reversed(inspect.getmro(cls)):
        for name in vars(klass).get('_declared_field_names', ()):
            if name not in seen:
                seen.add(name)
                yield name


def _get_type_hints(cls):
    try:
        return typing.get_type_hints(cls)
    except (NameError, AttributeError, TypeError, SyntaxError) as exc:
        raise FieldResolutionError(
            cls,
            public_message='Cannot resolve field types of {} ({}).'.format(
                cls.__qualname__, exc)) from exc


def _make_assign(field, setter_name):
    if setter_name is None:
        return field.__set__

    def assign(instance, value):
        getattr(instance, setter_name)(value)

    return assign


def _build_field_descriptors(cls):
    type_hints = None
    excluded_owners = library_base_classes(cls)
    descriptors = []
    for name in _iter_all_field_names(cls):
        field = inspect.getattr_static(cls, name)
        if not isinstance(field, Field):
            raise FieldResolutionError(
                name,
                public_message='Field {!a} of {} is shadowed by a non-field '
                               'attribute.'.format(name, cls.__qualname__))
        declared_type = field.type
        if declared_type is None:
            if type_hints is None:
                type_hints = _get_type_hints(cls)
            declared_type = type_hints[name]
        value_type = resolve_value_type(declared_type)
        key = field.key or to_camel(name)
        setter_name = find_accessor(cls, 'set', name, excluded_owners=excluded_owners)
        if setter_name is None and key != name:
            setter_name = find_accessor(cls, 'set', key, excluded_owners=excluded_owners)
        descriptors.append(FieldDescriptor(
            name=name,
            key=key,
            declared_type=declared_type,
            value_type=value_type,
            opaque=field.opaque,
            entity_type=field.entity_type,
            setter_name=setter_name,
            lookup_key=to_camel(key),
            assign=_make_assign(field, setter_name)))
    return tuple(descriptors)


_schema_lock = threading.Lock()


def fields(cls_or_instance):
    """
    Get the field descriptors of a transfer object class.

    Args:
        `cls_or_instance`:
            A `BaseTransferObject` subclass or an instance of it.

    Returns:
        A tuple of `FieldDescriptor` instances (base classes' fields
        first, then the class's own fields, each group in the order of
        declaration).

    Raises:
        `FieldResolutionError` if a field type cannot be resolved.
        `TypeError` if the argument is not a transfer object (class).
    """
    cls = cls_or_instance if isinstance(cls_or_instance, type) else type(cls_or_instance)
    if not issubclass(cls, BaseTransferObject):
        raise TypeError('{!a} is not a transfer object class'.format(cls))
    descriptors = cls.__dict__.get('_field_descriptors')
    if descriptors is None:
        with _schema_lock:
            descriptors = cls.__dict__.get('_field_descriptors')
            if descriptors is None:
                descriptors = _build_field_descriptors(cls)
                cls._field_descriptors = descriptors
                LOGGER.debug('fields of %s resolved: %s',
                             cls.__qualname__,
                             ', '.join(fd.name for fd in descriptors))
    return descriptors


#
# The base class
#

class BaseTransferObject:

    """
    The base class that provides the field declaration machinery.

    (Not to be subclassed directly by client code -- see
    `transferobj.transfer_object.TransferObject`.)
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _declare_fields(cls)

    def __init__(self, /, **field_values):
        if field_values:
            legal_names = {fd.name for fd in fields(self)}
            illegal_names = sorted(set(field_values).difference(legal_names))
            if illegal_names:
                raise TypeError('illegal keyword arguments for {} constructor: {}'.format(
                    get_class_name(self),
                    ', '.join(map(repr, illegal_names))))
            for name, value in field_values.items():
                setattr(self, name, value)

    @classmethod
    def get_fields(cls):
        """Get the `FieldDescriptor`s of the class (see: `fields()`)."""
        return fields(cls)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return all(fd.get(self) == fd.get(other) for fd in fields(self))

    __hash__ = None

    def __repr__(self):
        # noinspection PyBroadException
        try:
            content = ', '.join(
                '{}={!r}'.format(fd.name, fd.get(self))
                for fd in fields(self))
        except Exception:
            return object.__repr__(self)
        return '<{} {}>'.format(self.__class__.__qualname__, content)
