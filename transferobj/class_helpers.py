# Copyright (c) 2025 NASK. All rights reserved.

import inspect
from importlib import import_module

from transferobj.naming import (
    to_pascal,
    to_snake,
)


def attr_repr(*attr_names):
    """
    Make a __repr__() implementation based on given attribute names.

    Any number of positional args:
        Names of instance attributes and/or class attributes.

    Returns:
        A function being the requested __repr__() implementation.

    >>> class A(object):
    ...    __repr__ = attr_repr('x', 'y')
    ...    x = 1
    ...    def __init__(self):
    ...        self.y = 'qwerty'
    >>> a = A()
    >>> a
    <A x=1, y='qwerty'>
    """
    format_repr = ('<{0.__class__.__qualname__} ' +
                   ', '.join('%s={0.%s!r}' % (name, name)
                             for name in attr_names) +
                   '>').format
    format_repr_fallback = object.__repr__

    def __repr__(self):
        # noinspection PyBroadException
        try:
            return format_repr(self)
        except Exception:
            return format_repr_fallback(self)

    return __repr__


def get_class_name(instance_or_class):
    """
    Get the name of the given class or of the class of the given instance.

    >>> class SpamHam: pass
    >>> s = SpamHam()
    >>> get_class_name(SpamHam)
    'SpamHam'
    >>> get_class_name(s)
    'SpamHam'
    """
    return (
        instance_or_class.__name__
        if isinstance(instance_or_class, type)
        else instance_or_class.__class__.__name__)


def import_by_dotted_name(dotted_name):
    """
    Import an object specified by the given `dotted_name`.

    Both the `'package.module.Name'` and the `'package.module:Name'`
    notations are supported.

    >>> import_by_dotted_name('collections.OrderedDict') is __import__('collections').OrderedDict
    True
    >>> import_by_dotted_name('os.path:join') is __import__('os').path.join
    True
    >>> import_by_dotted_name('collections.NonExistentObj')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    ImportError: ...
    """
    module_name, colon, attr_path = dotted_name.partition(':')
    if colon:
        obj = import_module(module_name)
        for part in attr_path.split('.'):
            obj = _get_attr_or_import_error(obj, part, dotted_name)
        return obj
    all_name_parts = dotted_name.split('.')
    importable_name = all_name_parts[0]
    obj = import_module(importable_name)
    for part in all_name_parts[1:]:
        importable_name += '.{}'.format(part)
        try:
            obj = getattr(obj, part)
        except AttributeError:
            try:
                import_module(importable_name)
            except ModuleNotFoundError as exc:
                raise ImportError(
                    f'cannot import {importable_name!a}',
                    name=exc.name, path=exc.path) from None
            obj = _get_attr_or_import_error(obj, part, dotted_name)
    return obj


def _get_attr_or_import_error(obj, attr_name, dotted_name):
    try:
        return getattr(obj, attr_name)
    except AttributeError:
        raise ImportError(f'cannot import {dotted_name!a}') from None


def accessor_names(prefix, name):
    """
    Get the candidate names of an accessor method (such as a setter or
    getter) of the given attribute.

    Args:
        `prefix`: the accessor prefix, e.g. `'set'` or `'get'`.
        `name`: the attribute name (or field key).

    Returns:
        A tuple of the (unique) names: the Java-Bean-like one first,
        then the Python-like one.

    >>> accessor_names('set', 'firstName')
    ('setFirstName', 'set_first_name')
    >>> accessor_names('get', 'first_name')
    ('getFirstName', 'get_first_name')
    >>> accessor_names('get', 'age')
    ('getAge', 'get_age')
    """
    return tuple(dict.fromkeys([
        prefix + to_pascal(name),
        prefix + '_' + to_snake(name),
    ]))


def find_accessor(cls, prefix, name, excluded_owners=()):
    """
    Find the name of an accessor method of the given attribute.

    Args:
        `cls`: the class to be searched.
        `prefix`: the accessor prefix, e.g. `'set'` or `'get'`.
        `name`: the attribute name (or field key).

    Kwargs:
        `excluded_owners` (default: empty tuple):
            Classes whose own attributes are never considered
            accessors (`object` is always excluded).

    Returns:
        The name of the accessor method (a `str`) or `None`.

    >>> class Person:
    ...     def setFirstName(self, value): pass
    ...     def get_age(self): pass
    ...     get_nick = 'not callable'
    >>> find_accessor(Person, 'set', 'first_name')
    'setFirstName'
    >>> find_accessor(Person, 'get', 'age')
    'get_age'
    >>> find_accessor(Person, 'get', 'nick') is None
    True
    >>> find_accessor(Person, 'set', 'age') is None
    True
    """
    excluded_owners = set(excluded_owners) | {object}
    for accessor_name in accessor_names(prefix, name):
        for klass in inspect.getmro(cls):
            if accessor_name not in vars(klass):
                continue
            if klass not in excluded_owners and callable(getattr(cls, accessor_name)):
                return accessor_name
            break
    return None
