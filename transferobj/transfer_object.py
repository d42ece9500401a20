# Copyright (c) 2025 NASK. All rights reserved.

"""
The `TransferObject` base class.

>>> import datetime
>>> class UserDto(TransferObject):
...     firstName: str
...     age: int
...     createdAt: datetime.datetime
...
>>> user = UserDto.from_dict({'first_name': 'John', 'age': 30,
...                           'created_at': '2023-10-27T10:00:00+00:00'})
>>> user.firstName, user.age, user.createdAt
('John', 30, datetime.datetime(2023, 10, 27, 10, 0, tzinfo=datetime.timezone.utc))
>>> user.to_dict()
{'firstName': 'John', 'age': 30, 'createdAt': '2023-10-27T10:00:00+00:00'}
>>> user.to_snake_case_json()
'{"first_name": "John", "age": 30, "created_at": "2023-10-27T10:00:00+00:00"}'
>>> user.format('Hello :f1 (:a1)!')
'Hello John (30)!'
"""

import json
from collections.abc import Mapping

from transferobj.config import default_marshalling_config
from transferobj.exceptions import MalformedPayloadError
from transferobj.fields import BaseTransferObject
from transferobj.formatting import format_transfer_object
from transferobj.marshaller import Marshaller
from transferobj.naming import to_snake


class TransferObject(BaseTransferObject):

    """
    The base class for transfer objects (DTOs).

    Subclasses declare their fields with class-level annotations (see
    the docs of the `transferobj.fields` module).

    The constructor accepts field values as keyword arguments.

    Instances compare equal if they are of the same class and all their
    field values are equal.

    A subclass can set the `marshalling_config` class attribute to a
    `ConfigSection` obtained with
    `transferobj.config.get_marshalling_config()`; if it is `None`,
    the (process-wide) default configuration is used.
    """

    marshalling_config = None

    @classmethod
    def get_marshalling_config(cls):
        if cls.marshalling_config is None:
            return default_marshalling_config()
        return cls.marshalling_config

    @classmethod
    def get_marshaller(cls):
        config = cls.get_marshalling_config()
        return Marshaller(default_tz=config['default_timezone'])

    #
    # Conversions to/from dicts

    def to_dict(self):
        """
        Convert this transfer object to a new `dict` (with camelCase
        keys, i.e., field keys).

        Nested transfer objects are converted recursively, `datetime`
        values are converted to RFC 3339 strings.
        """
        return self.get_marshaller().dump(self)

    def to_snake_case_dict(self):
        """
        Like `to_dict()` but with all keys (at any nesting level,
        except inside opaque fields) converted to snake_case.
        """
        return self.get_marshaller().dump(self, key_converter=to_snake)

    @classmethod
    def from_dict(cls, data):
        """
        Make a new instance from a mapping (whose keys can be in
        snake_case or camelCase).

        Raises:
            `MalformedPayloadError` if `data` is not a mapping.
            `DateParseError` if a date+time value is invalid.
        """
        return cls.get_marshaller().load(cls, data)

    #
    # Conversions to/from JSON

    def to_json(self):
        return self._dump_json(self.to_dict())

    def to_snake_case_json(self):
        return self._dump_json(self.to_snake_case_dict())

    @classmethod
    def from_json(cls, text):
        """
        Make a new instance from JSON text (a `str`, `bytes` or
        `bytearray`) that represents an object.

        Raises:
            `MalformedPayloadError` if the text is not valid JSON or
            does not represent an object.
            `DateParseError` if a date+time value is invalid.
        """
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as exc:
            raise MalformedPayloadError(
                text,
                public_message='Cannot make {} from the given text (it is not '
                               'valid JSON: {}).'.format(cls.__qualname__, exc)) from exc
        if not isinstance(data, Mapping):
            raise MalformedPayloadError(
                text,
                public_message='Cannot make {} from the given JSON text (it '
                               'does not represent an object).'.format(cls.__qualname__))
        return cls.from_dict(data)

    @classmethod
    def _dump_json(cls, data):
        config = cls.get_marshalling_config()
        return json.dumps(
            data,
            ensure_ascii=config['json_ensure_ascii'],
            sort_keys=config['json_sort_keys'],
            indent=config['json_indent'])

    #
    # Other conversions

    def to_entity(self, entity):
        """
        Copy the field values to an entity.

        Args:
            `entity`:
                A class, a dotted import path of a class (e.g.,
                `'myapp.models.User'` or `'myapp.models:User'`), or an
                instance.  A class must be instantiable without
                arguments.

        Returns:
            The entity instance.

        Fields whose values are `None` are skipped; so are fields the
        entity has neither a setter (`set<PascalName>()` or
        `set_<snake_name>()`) nor a public writable attribute for.
        Nested transfer objects are converted recursively.

        Raises:
            `EntityNotFoundError`, `FieldResolutionError`.
        """
        return self.get_marshaller().project(self, entity)

    def format(self, queries, aliases=None, separator=None, marker=None):
        """
        Render this transfer object through a template.

        Args:
            `queries`:
                A template (`str`) or a sequence of templates to be
                joined with `separator`.  Placeholders have the form
                `<marker><alias>`, e.g., `:n1`.

        Kwargs:
            `aliases` (default: None):
                A mapping of aliases to attribute names; by default,
                each alias is the first letter of the field key followed
                by the lowest free ordinal (e.g., for the fields `name`,
                `age` and `address`: `n1`, `a1` and `a2`).
            `separator`, `marker` (default: None):
                If `None`, taken from the marshalling configuration
                (by default: `'\\n'` and `':'`).

        Raises:
            `UndefinedAttributeError` if an alias refers to nothing.
        """
        config = self.get_marshalling_config()
        return format_transfer_object(
            self,
            queries,
            aliases=aliases,
            separator=(config['format_separator'] if separator is None else separator),
            marker=(config['format_marker'] if marker is None else marker),
            default_tz=config['default_timezone'])

    def __str__(self):
        return self.to_json()

    def to_string(self):
        return str(self)
