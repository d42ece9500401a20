# Copyright (c) 2025 NASK. All rights reserved.

"""
Exception classes raised by the *transferobj* library.

All of them derive from `TransferObjectError`, and most of them also
from a relevant built-in exception class, so that client code which
does not care about this library's hierarchy can still catch them in
the usual way (e.g., `DateParseError` is a `ValueError`).
"""


#
# Generic mix-ins
#

class _ErrorWithPublicMessageMixin:

    r"""
    A mix-in class that provides the `public_message` property.

    The value of this property is a `str`.  It is taken either from the
    `public_message` constructor keyword argument or -- if the argument
    was not specified -- from the value of the `default_public_message`
    attribute.

    The public message should be a complete sentence (or several
    sentences): first word capitalized (if not being an identifier
    that begins with a lower case letter) + the period at the end.

    The `str()` conversion uses the value of `public_message`:

    >>> class SomeError(_ErrorWithPublicMessageMixin, Exception):
    ...     pass
    ...
    >>> str(SomeError('a', 'b'))  # using attribute default_public_message
    'Internal error.'
    >>> str(SomeError('a', 'b', public_message='Spąm.'))
    'Spąm.'

    The `repr()` conversion results in a programmer-readable
    representation (containing the class name, `repr()`-formatted
    constructor arguments and the `public_message` property):

    >>> SomeError('a', 'b')   # using class's default_public_message
    <SomeError: args=('a', 'b'); public_message='Internal error.'>
    >>> SomeError('a', 'b', public_message='Spam.')
    <SomeError: args=('a', 'b'); public_message='Spam.'>
    """

    #: (overridable in subclasses)
    default_public_message = 'Internal error.'

    def __init__(self, /, *args, **kwargs):
        try:
            public_message = kwargs.pop('public_message')
        except KeyError:
            pass
        else:
            self._public_message = str(public_message)
        try:
            super().__init__(*args, **kwargs)
        except TypeError:
            if kwargs:
                raise TypeError(
                    'illegal keyword arguments for {} constructor: {}'.format(
                        self.__class__.__name__,
                        ', '.join(sorted(map(repr, kwargs))))) from None
            raise

    @property
    def public_message(self):
        """The aforementioned property."""
        try:
            return self._public_message
        except AttributeError:
            # (in subclasses `default_public_message` can also be a @property)
            self._public_message = str(self.default_public_message)
            return self._public_message

    def __str__(self):
        return self.public_message

    def __repr__(self):
        return ('<{0.__class__.__name__}: args={0.args!r}; '
                'public_message={0.public_message!r}>'.format(self))


#
# Public exception classes
#

class TransferObjectError(_ErrorWithPublicMessageMixin, Exception):

    """
    The base class of all *transferobj*-specific exceptions.

    >>> exc = TransferObjectError('foo', public_message='Something is wrong.')
    >>> exc.public_message
    'Something is wrong.'
    >>> exc.args
    ('foo',)
    """


class FieldResolutionError(TransferObjectError, TypeError):

    """
    Raised when the type of a field cannot be determined.

    That is the case when a field has no type annotation (and no
    explicit type), when its annotation cannot be evaluated or does not
    denote a type, or when the target type of a nested entity cannot be
    resolved during a transfer object -> entity conversion.
    """

    default_public_message = 'Cannot resolve the type of a field.'


class DateParseError(TransferObjectError, ValueError):

    """
    Raised when a string is not a valid RFC 3339 date+time.

    >>> exc = DateParseError('2023-13-01')
    >>> isinstance(exc, ValueError)
    True
    >>> exc.invalid_value
    '2023-13-01'
    >>> str(exc)
    "'2023-13-01' is not a valid RFC 3339 date+time."
    """

    def __init__(self, invalid_value, /, *args, **kwargs):
        self.invalid_value = invalid_value
        super().__init__(invalid_value, *args, **kwargs)

    @property
    def default_public_message(self):
        return '{!a} is not a valid RFC 3339 date+time.'.format(self.invalid_value)


class MalformedPayloadError(TransferObjectError, ValueError):

    """
    Raised when the input to be deserialized is not well-formed (e.g.,
    is not valid JSON, or does not represent a mapping).
    """

    default_public_message = 'The payload is malformed.'


class EntityNotFoundError(TransferObjectError, LookupError):

    """
    Raised when the target entity type cannot be found or is not
    constructible without arguments.

    >>> exc = EntityNotFoundError('spam.Ham')
    >>> str(exc)
    "Entity 'spam.Ham' not found."
    >>> exc.entity
    'spam.Ham'
    """

    def __init__(self, entity, /, *args, **kwargs):
        self.entity = entity
        super().__init__(entity, *args, **kwargs)

    @property
    def default_public_message(self):
        return 'Entity {!a} not found.'.format(self.entity)


class UndefinedAttributeError(TransferObjectError, AttributeError):

    """
    Raised by `TransferObject.format()` when an alias refers to
    something that is neither a field, nor a getter, nor an attribute.

    >>> exc = UndefinedAttributeError('UserDto', 'nickname')
    >>> str(exc)
    'Undefined attribute UserDto::nickname.'
    """

    def __init__(self, class_name, attr_name, /, *args, **kwargs):
        self.class_name = class_name
        self.attr_name = attr_name
        super().__init__(class_name, attr_name, *args, **kwargs)

    @property
    def default_public_message(self):
        return 'Undefined attribute {}::{}.'.format(self.class_name, self.attr_name)
