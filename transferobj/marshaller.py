# Copyright (c) 2025 NASK. All rights reserved.

"""
The marshaller: conversions of transfer objects to/from plain dicts
and to entities (instances of arbitrary classes).

Instances of `Marshaller` are stateless (apart from the immutable
settings they are created with), so they can be shared between
threads.  Typically, client code does not use this module directly
but via the `TransferObject` methods.
"""

import collections.abc
import datetime
import functools
import inspect
import types
import typing
from collections.abc import Mapping

from transferobj.class_helpers import (
    find_accessor,
    get_class_name,
    import_by_dotted_name,
)
from transferobj.datetime_helpers import (
    UTC,
    format_rfc3339,
    parse_rfc3339,
)
from transferobj.exceptions import (
    DateParseError,
    EntityNotFoundError,
    FieldResolutionError,
    MalformedPayloadError,
)
from transferobj.fields import (
    BaseTransferObject,
    ValueKind,
    fields,
)
from transferobj.log_helpers import get_logger
from transferobj.naming import (
    rename_keys,
    to_camel,
)


LOGGER = get_logger(__name__)


def is_collection(obj):
    return isinstance(obj, BaseTransferObject) and isinstance(obj, collections.abc.Collection)


def is_collection_type(cls):
    return issubclass(cls, BaseTransferObject) and issubclass(cls, collections.abc.Collection)


class Marshaller:

    """
    The marshaller.

    Kwargs:
        `default_tz` (default: UTC):
            The time zone of naive `datetime` values (when dumping) and
            of date+time strings without a time zone designator (when
            loading).
    """

    def __init__(self, *, default_tz=UTC):
        self._default_tz = default_tz

    #
    # Transfer object -> dict

    def dump(self, obj, key_converter=None):
        """
        Convert a transfer object to a `dict`.

        Args:
            `obj`: a transfer object (but not a collection).

        Kwargs:
            `key_converter` (default: None):
                If not `None`, a function to be applied to all keys
                (except the keys inside opaque fields' values), e.g.,
                `transferobj.naming.to_snake`.

        Returns:
            A new `dict` that maps field keys to the (converted) field
            values -- in the order of field declaration.
        """
        result = {}
        for fd in fields(obj):
            key = fd.key if key_converter is None else key_converter(fd.key)
            result[key] = self.dump_value(fd.get(obj), key_converter, opaque=fd.opaque)
        return result

    def dump_collection(self, collection, key_converter=None, as_list_if_sequential=False):
        """
        Convert a transfer object collection to a `dict` (or a `list`).

        Kwargs:
            `key_converter`: see `dump()`.
            `as_list_if_sequential` (default: False):
                If true and the collection's keys are exactly
                `0, 1, ... <n - 1>`, a `list` is returned.
        """
        result = {
            key: self.dump_value(element, key_converter)
            for key, element in collection.items()}
        if as_list_if_sequential and list(result) == list(range(len(result))):
            return list(result.values())
        return result

    def dump_value(self, value, key_converter=None, opaque=False):
        if isinstance(value, BaseTransferObject):
            if is_collection(value):
                return self.dump_collection(value, key_converter, as_list_if_sequential=True)
            return self.dump(value, key_converter)
        if isinstance(value, datetime.datetime):
            return format_rfc3339(value, self._default_tz)
        if isinstance(value, Mapping):
            rename = (key_converter is not None and not opaque)
            return {
                (key_converter(key) if rename and isinstance(key, str) else key):
                    self.dump_value(val, key_converter, opaque)
                for key, val in value.items()}
        if isinstance(value, list):
            return [self.dump_value(item, key_converter, opaque) for item in value]
        if isinstance(value, tuple):
            return tuple(self.dump_value(item, key_converter, opaque) for item in value)
        return value

    #
    # Dict -> transfer object

    def load(self, cls, data):
        """
        Make a transfer object from a mapping.

        Args:
            `cls`: the transfer object class (not a collection one).
            `data`: the source mapping (its keys may be in snake_case
                or camelCase, at any nesting level).

        Returns:
            A new instance of `cls`.  Fields whose keys are absent in
            `data` are left unset (i.e., their defaults apply).

        Raises:
            `MalformedPayloadError` if `data` is not a mapping.
            `DateParseError` if a date+time field's value is invalid.
            `FieldResolutionError` if a field type cannot be resolved.
        """
        if not isinstance(data, Mapping):
            raise MalformedPayloadError(
                data,
                public_message='Cannot make {} from {} (a mapping is expected).'.format(
                    cls.__qualname__,
                    get_class_name(data)))
        renamed = {
            (to_camel(key) if isinstance(key, str) else key): value
            for key, value in data.items()}
        obj = cls()
        for fd in fields(cls):
            try:
                raw = renamed[fd.lookup_key]
            except KeyError:
                continue
            fd.assign(obj, self._load_value(raw, fd.value_type, fd.opaque, fd.key))
        return obj

    def load_collection(self, cls, data):
        """
        Make a transfer object collection from a list or a mapping.

        Mapping elements are converted with `cls.element_type` (if it
        is not `None`); other elements are taken as they are.
        """
        if isinstance(data, Mapping):
            items = data.items()
        elif isinstance(data, (list, tuple)):
            items = enumerate(data)
        else:
            raise MalformedPayloadError(
                data,
                public_message='Cannot make {} from {} (a list or mapping '
                               'is expected).'.format(cls.__qualname__, get_class_name(data)))
        element_type = cls.element_type
        elements = {}
        for key, element in items:
            if element_type is not None and (
                    isinstance(element, Mapping)
                    or (isinstance(element, list) and is_collection_type(element_type))):
                element = self._load_transfer_object(element_type, element)
            elements[key] = element
        return cls(elements)

    def _load_transfer_object(self, cls, raw):
        if is_collection_type(cls):
            return self.load_collection(cls, raw)
        return self.load(cls, raw)

    def _load_value(self, raw, value_type, opaque, key):
        kind = value_type.kind
        if kind is ValueKind.TRANSFER_OBJECT and isinstance(raw, Mapping):
            return self.load(value_type.py_type, raw)
        if kind is ValueKind.COLLECTION and isinstance(raw, (Mapping, list, tuple)):
            return self.load_collection(value_type.py_type, raw)
        if kind is ValueKind.DATETIME and isinstance(raw, str):
            try:
                return parse_rfc3339(raw, self._default_tz)
            except DateParseError as exc:
                raise DateParseError(
                    raw,
                    public_message='Invalid value of {!a}: {}'.format(
                        key, exc.public_message)) from exc
        if kind is ValueKind.SEQUENCE and isinstance(raw, (list, tuple)):
            return value_type.py_type(
                self._load_value(item, value_type.item_type, opaque, key)
                for item in raw)
        if kind is ValueKind.MAPPING and isinstance(raw, Mapping):
            return {
                (to_camel(k) if not opaque and isinstance(k, str) else k):
                    self._load_value(v, value_type.item_type, opaque, key)
                for k, v in raw.items()}
        if opaque:
            return raw
        return rename_keys(raw, to_camel)

    #
    # Transfer object -> entity

    def project(self, obj, entity):
        """
        Copy the field values of a transfer object to an entity.

        Args:
            `obj`: the source transfer object (never modified).
            `entity`: the target -- a class, a dotted import path of a
                class, or an existing instance.

        Returns:
            The entity instance (a new one, unless an instance has been
            given).

        Raises:
            `EntityNotFoundError` if the entity class cannot be imported
            or instantiated without arguments.
            `FieldResolutionError` if the target type for a nested
            transfer object cannot be determined.
        """
        target = self._get_entity_instance(entity)
        target_cls = type(target)
        for fd in fields(obj):
            value = fd.get(obj)
            if value is None:
                LOGGER.debug('%s.%s is None -- not copied to the %s entity',
                             get_class_name(obj), fd.name, target_cls.__qualname__)
                continue
            slot = _get_entity_slot(target_cls, fd.name)
            if slot.setter_name is None and not (
                    slot.writable or fd.name in getattr(target, '__dict__', ())):
                LOGGER.debug('%s.%s is neither settable nor writable -- skipped',
                             target_cls.__qualname__, fd.name)
                continue
            if isinstance(value, BaseTransferObject):
                value = self._project_nested(value, fd, slot, target_cls)
            if slot.setter_name is not None:
                getattr(target, slot.setter_name)(value)
            else:
                setattr(target, fd.name, value)
        return target

    def _project_nested(self, value, fd, slot, target_cls):
        if is_collection(value):
            if fd.entity_type is None:
                return value
            return [
                (self.project(element, fd.entity_type)
                 if isinstance(element, BaseTransferObject)
                 else element)
                for element in value]
        nested_entity_type = fd.entity_type or slot.declared_type
        if nested_entity_type is None:
            raise FieldResolutionError(
                fd.name,
                public_message='Cannot determine the entity type for the '
                               'transfer object being the value of {!a} (consider '
                               'specifying `Field(entity_type=...)`), when making a '
                               '{} entity.'.format(fd.name, target_cls.__qualname__))
        return self.project(value, nested_entity_type)

    def _get_entity_instance(self, entity):
        if isinstance(entity, str):
            try:
                entity_cls = import_by_dotted_name(entity)
            except (ImportError, ValueError) as exc:
                raise EntityNotFoundError(entity) from exc
            if not isinstance(entity_cls, type):
                raise EntityNotFoundError(entity)
        elif isinstance(entity, type):
            entity_cls = entity
        else:
            return entity
        if inspect.isabstract(entity_cls) or not _is_constructible_without_args(entity_cls):
            raise EntityNotFoundError(
                entity if isinstance(entity, str) else entity_cls.__qualname__)
        LOGGER.debug('creating a new %s entity', entity_cls.__qualname__)
        return entity_cls()


def _is_constructible_without_args(cls):
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        # (signature not available, e.g., for some built-in types)
        return True
    try:
        signature.bind()
    except TypeError:
        return False
    return True


class _EntitySlot(typing.NamedTuple):
    setter_name: typing.Optional[str]
    writable: bool
    declared_type: typing.Optional[type]


_MISSING = object()


@functools.lru_cache(maxsize=1024)
def _get_entity_slot(entity_cls, name):
    if name.startswith('_'):
        return _EntitySlot(None, False, None)
    setter_name = find_accessor(entity_cls, 'set', name)
    annotations = _get_entity_annotations(entity_cls)
    annotation = annotations.get(name)
    if annotation is None and setter_name is not None:
        annotation = _get_setter_param_annotation(getattr(entity_cls, setter_name))
    return _EntitySlot(
        setter_name=setter_name,
        writable=_is_writable_class_attribute(entity_cls, name, annotations),
        declared_type=_as_concrete_class(annotation))


def _get_entity_annotations(entity_cls):
    try:
        return typing.get_type_hints(entity_cls)
    except (NameError, AttributeError, TypeError, SyntaxError) as exc:
        LOGGER.debug('cannot evaluate type annotations of %s (%s) -- '
                     'using the unevaluated ones', entity_cls.__qualname__, exc)
    annotations = {}
    for klass in reversed(inspect.getmro(entity_cls)):
        annotations.update(inspect.get_annotations(klass))
    return annotations


def _get_setter_param_annotation(setter):
    try:
        params = list(inspect.signature(setter).parameters.values())
    except (TypeError, ValueError):
        return None
    if params and params[0].name == 'self':
        # (a function taken from the class, not a bound method)
        params = params[1:]
    if not params or params[0].annotation is inspect.Parameter.empty:
        return None
    annotation = params[0].annotation
    if isinstance(annotation, str):
        try:
            annotation = typing.get_type_hints(setter).get(params[0].name)
        except (NameError, AttributeError, TypeError, SyntaxError):
            return None
    return annotation


def _as_concrete_class(annotation):
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        non_none_args = [
            arg for arg in typing.get_args(annotation)
            if arg is not type(None)]
        if len(non_none_args) != 1:
            return None
        annotation = non_none_args[0]
    if (isinstance(annotation, type)
          and annotation.__module__ != 'builtins'
          and not inspect.isabstract(annotation)):
        return annotation
    return None


def _is_writable_class_attribute(entity_cls, name, annotations):
    attr = inspect.getattr_static(entity_cls, name, _MISSING)
    if isinstance(attr, property):
        return attr.fset is not None
    if attr is not _MISSING:
        if hasattr(type(attr), '__set__'):
            # (data descriptor, e.g., a `__slots__` member)
            return True
        if callable(attr) or isinstance(attr, (classmethod, staticmethod)):
            return False
        return True
    return name in annotations
