# Copyright (c) 2025 NASK. All rights reserved.

"""
Naming convention conversions (camelCase, snake_case, PascalCase,
kebab-case, Title Case) and recursive renaming of mapping keys.

All functions provided by this module are pure, stateless and
deterministic -- so they can safely be used concurrently.
"""

import re
from collections.abc import Mapping


__all__ = [
    'to_camel',
    'to_snake',
    'to_pascal',
    'to_kebab',
    'to_title',
    'to_upper',
    'to_lower',
    'rename_keys',
]


_WORD_SEPARATOR_REGEX = re.compile(r'[_\s]+')
_UPPER_ASCII_LETTER_REGEX = re.compile(r'([A-Z])')


def _capitalize_first(s):
    return s[:1].upper() + s[1:]


def _lowercase_first(s):
    return s[:1].lower() + s[1:]


def to_pascal(s):
    """
    Convert the given string to PascalCase.

    >>> to_pascal('hello world')
    'HelloWorld'
    >>> to_pascal('first_name')
    'FirstName'
    >>> to_pascal('firstName')
    'FirstName'
    >>> to_pascal('')
    ''
    """
    return ''.join(map(_capitalize_first, _WORD_SEPARATOR_REGEX.split(s)))


def to_camel(s):
    """
    Convert the given string to camelCase.

    Words are delimited with underscores and/or whitespace characters;
    the first letter of each word but the first one is capitalized,
    the rest of the word is kept intact (so a camelCase string is
    returned unchanged).

    >>> to_camel('first_name')
    'firstName'
    >>> to_camel('hello world')
    'helloWorld'
    >>> to_camel('firstName')
    'firstName'
    >>> to_camel('created_at_utc')
    'createdAtUtc'
    >>> to_camel('name')
    'name'
    """
    return _lowercase_first(to_pascal(s))


def _to_delimited_lowercase(s, delimiter):
    return _UPPER_ASCII_LETTER_REGEX.sub(delimiter + r'\1', s).lower().strip(delimiter)


def to_snake(s):
    """
    Convert the given (camelCase or PascalCase) string to snake_case.

    >>> to_snake('firstName')
    'first_name'
    >>> to_snake('HelloWorld')
    'hello_world'
    >>> to_snake('first_name')
    'first_name'
    >>> to_snake('name')
    'name'
    """
    return _to_delimited_lowercase(s, '_')


def to_kebab(s):
    """
    Convert the given (camelCase or PascalCase) string to kebab-case.

    Note that any underscores are kept intact.

    >>> to_kebab('HelloWorld')
    'hello-world'
    >>> to_kebab('firstName')
    'first-name'
    >>> to_kebab('first_name')
    'first_name'
    """
    return _to_delimited_lowercase(s, '-')


def to_title(s):
    """
    >>> to_title('hello world')
    'Hello World'
    >>> to_title('hELLO wORLD')
    'Hello World'
    """
    return ' '.join(map(_capitalize_first, s.lower().split(' ')))


def to_upper(s):
    return s.upper()


def to_lower(s):
    return s.lower()


def rename_keys(data, converter):
    """
    Recursively rename the keys of (possibly nested) mappings.

    Args:
        `data`:
            The data to be processed.  Mappings and lists/tuples are
            traversed recursively; any other objects are left as they
            are.
        `converter`:
            A callable that takes a `str` key and returns the new key
            (e.g., `to_snake`).  Non-`str` keys are left intact.

    Returns:
        New data: each mapping is replaced with a new `dict`, each
        list/tuple -- with a new `list`/`tuple`.

    >>> rename_keys({'firstName': 'John', 'tags': [{'tagName': 'x'}], 1: 'a'}, to_snake)
    {'first_name': 'John', 'tags': [{'tag_name': 'x'}], 1: 'a'}
    >>> rename_keys(({'user_id': 1},), to_camel)
    ({'userId': 1},)
    >>> rename_keys('first_name', to_camel)
    'first_name'
    """
    if isinstance(data, Mapping):
        return {
            (converter(key) if isinstance(key, str) else key): rename_keys(value, converter)
            for key, value in data.items()}
    if isinstance(data, list):
        return [rename_keys(item, converter) for item in data]
    if isinstance(data, tuple):
        return tuple(rename_keys(item, converter) for item in data)
    return data
