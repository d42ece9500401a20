# Copyright (c) 2025 NASK. All rights reserved.

"""
Template formatting: rendering transfer objects through placeholder
templates (see: `TransferObject.format()`).
"""

import datetime
import json
import numbers
import re

from transferobj.class_helpers import (
    find_accessor,
    get_class_name,
)
from transferobj.datetime_helpers import UTC
from transferobj.exceptions import UndefinedAttributeError
from transferobj.fields import (
    fields,
    library_base_classes,
)
from transferobj.marshaller import Marshaller


def make_default_aliases(attr_names):
    """
    Derive placeholder aliases from attribute names.

    Each alias is the first letter of the attribute name followed by
    the lowest ordinal (starting from 1) that makes it unique.

    Returns:
        A `dict` that maps aliases to attribute names.

    >>> make_default_aliases(['name', 'age', 'address', 'nick'])
    {'n1': 'name', 'a1': 'age', 'a2': 'address', 'n2': 'nick'}
    """
    aliases = {}
    for attr_name in attr_names:
        ordinal = 1
        alias = attr_name[:1] + str(ordinal)
        while alias in aliases:
            ordinal += 1
            alias = attr_name[:1] + str(ordinal)
        aliases[alias] = attr_name
    return aliases


def format_transfer_object(obj, queries, aliases=None, separator='\n', marker=':',
                           default_tz=UTC):
    """
    Render a transfer object through a template.

    Args:
        `obj`: the transfer object.
        `queries`: the template (a `str`) or a sequence of templates
            (to be joined with `separator`).

    Kwargs:
        `aliases` (default: None):
            A mapping of placeholder aliases to attribute names.  If
            empty or `None`, the aliases are derived from the field
            keys (see: `make_default_aliases()`).
        `separator` (default: `'\\n'`):
            See the `queries` argument.
        `marker` (default: `':'`):
            The prefix of placeholders (`<marker><alias>`).
        `default_tz` (default: UTC):
            The time zone of naive `datetime` values.

    Returns:
        The rendered `str`.  Placeholders with unknown aliases are left
        intact.

    Raises:
        `UndefinedAttributeError` if an alias refers to an attribute
        that is neither a getter, nor a field, nor a (public) instance
        attribute.
    """
    template = queries if isinstance(queries, str) else separator.join(queries)
    if not aliases:
        aliases = make_default_aliases([fd.key for fd in fields(obj)])
    marshaller = Marshaller(default_tz=default_tz)
    replacements = {
        marker + alias: stringify(get_attribute_value(obj, attr_name), marshaller)
        for alias, attr_name in aliases.items()}
    if not replacements:
        return template
    placeholder_regex = re.compile('|'.join(
        map(re.escape, sorted(replacements, key=len, reverse=True))))
    return placeholder_regex.sub(lambda match: replacements[match.group(0)], template)


def get_attribute_value(obj, attr_name):
    getter_name = find_accessor(type(obj), 'get', attr_name,
                                excluded_owners=library_base_classes(type(obj)))
    if getter_name is not None:
        return getattr(obj, getter_name)()
    for fd in fields(obj):
        if attr_name in (fd.key, fd.name):
            return fd.get(obj)
    instance_dict = getattr(obj, '__dict__', {})
    if not attr_name.startswith('_') and attr_name in instance_dict:
        return instance_dict[attr_name]
    raise UndefinedAttributeError(get_class_name(obj), attr_name)


def stringify(value, marshaller=None):
    """
    Convert a value to a `str` to be placed in a rendered template.

    >>> stringify(None), stringify(42), stringify('abc'), stringify(True)
    ('', '42', 'abc', 'True')
    >>> stringify(datetime.datetime(2023, 10, 27, 10, 0))
    '2023-10-27T10:00:00+00:00'
    >>> stringify({'tags': ['a', 'b']})
    '{"tags": ["a", "b"]}'
    """
    if marshaller is None:
        marshaller = Marshaller()
    if value is None:
        return ''
    if isinstance(value, (str, numbers.Number)):
        return str(value)
    if isinstance(value, datetime.datetime):
        return marshaller.dump_value(value)
    if type(value).__str__ is not object.__str__:
        return str(value)
    return json.dumps(marshaller.dump_value(value))
