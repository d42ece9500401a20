# Copyright (c) 2025 NASK. All rights reserved.

"""
`TransferObjectCollection` -- an ordered, keyed container of transfer
objects -- and `Criteria` (used by `TransferObjectCollection.matching()`).

>>> from transferobj.transfer_object import TransferObject
>>> class UserDto(TransferObject):
...     name: str
...     age: int
...
>>> class UserCollection(TransferObjectCollection):
...     element_type = UserDto
...
>>> users = UserCollection.from_dict([{'name': 'John', 'age': 30},
...                                   {'name': 'Jane', 'age': 25}])
>>> len(users), users.first().name, users.last().name
(2, 'John', 'Jane')
>>> older = users.filter(lambda user, key: user.age > 28)
>>> older.to_dict()
{0: {'name': 'John', 'age': 30}}
>>> len(users)    # (the original collection is intact)
2
"""

import collections.abc
import functools

from transferobj.class_helpers import (
    attr_repr,
    find_accessor,
)
from transferobj.fields import library_base_classes
from transferobj.naming import to_snake
from transferobj.transfer_object import TransferObject


__all__ = [
    'Criteria',
    'TransferObjectCollection',
]


def read_field_value(element, name):
    """
    Get the value of the given field (or any other attribute) of an
    element -- with a getter (`get<PascalName>()`/`get_<snake_name>()`)
    if the element's class provides one.  If the element is a mapping,
    the value is taken from it by key.
    """
    if isinstance(element, collections.abc.Mapping):
        return element[name]
    getter_name = find_accessor(type(element), 'get', name,
                                excluded_owners=library_base_classes(type(element)))
    if getter_name is not None:
        return getattr(element, getter_name)()
    return getattr(element, name)


class Criteria:

    """
    The criteria of selecting elements of a collection.

    Kwargs (all optional):
        `where`:
            A condition: either a predicate (a callable that takes an
            element and returns a true or false value), or a mapping of
            field names to the required (compared for equality) values.
        `order_by`:
            A mapping of field names to directions (`Criteria.ASC` or
            `Criteria.DESC`).
        `first_result`:
            The number of (filtered and ordered) elements to skip.
        `max_results`:
            The maximum number of elements to select.

    The setter methods return the instance (so that calls can be
    chained):

    >>> criteria = (Criteria().where({'role': 'admin'})
    ...                       .and_where(lambda user: user['age'] > 20)
    ...                       .order_by({'age': Criteria.DESC})
    ...                       .set_max_results(2))
    >>> elements = [{'role': 'admin', 'age': 30}, {'role': 'user', 'age': 40},
    ...             {'role': 'admin', 'age': 50}, {'role': 'admin', 'age': 10},
    ...             {'role': 'admin', 'age': 40}]
    >>> criteria.apply(enumerate(elements))
    [(2, {'role': 'admin', 'age': 50}), (4, {'role': 'admin', 'age': 40})]
    """

    ASC = 'ASC'
    DESC = 'DESC'

    def __init__(self, *, where=None, order_by=None, first_result=None, max_results=None):
        self.conditions = []
        self.orderings = {}
        self.first_result = None
        self.max_results = None
        if where is not None:
            self.where(where)
        if order_by is not None:
            self.order_by(order_by)
        if first_result is not None:
            self.set_first_result(first_result)
        if max_results is not None:
            self.set_max_results(max_results)

    __repr__ = attr_repr('conditions', 'orderings', 'first_result', 'max_results')

    @classmethod
    def create(cls):
        return cls()

    def where(self, condition):
        """Set the condition (replacing any previously set ones)."""
        self.conditions = [self._make_predicate(condition)]
        return self

    def and_where(self, condition):
        """Add a condition (to be satisfied together with the previous ones)."""
        self.conditions.append(self._make_predicate(condition))
        return self

    def order_by(self, orderings):
        orderings = dict(orderings)
        for field_name, direction in orderings.items():
            if direction not in (self.ASC, self.DESC):
                raise ValueError('illegal ordering direction {!a} (for {!a}); '
                                 'expected {!a} or {!a}'.format(
                                     direction, field_name, self.ASC, self.DESC))
        self.orderings = orderings
        return self

    def set_first_result(self, first_result):
        if first_result < 0:
            raise ValueError('first_result must not be negative')
        self.first_result = first_result
        return self

    def set_max_results(self, max_results):
        if max_results < 0:
            raise ValueError('max_results must not be negative')
        self.max_results = max_results
        return self

    def matches(self, element):
        return all(condition(element) for condition in self.conditions)

    def apply(self, items):
        """
        Select (filter, sort, slice) the given (key, element) pairs.

        Returns:
            A list of the selected (key, element) pairs.
        """
        selected = [(key, element) for key, element in items if self.matches(element)]
        # (sorting by the least significant field first; `list.sort()` is stable)
        for field_name, direction in reversed(list(self.orderings.items())):
            selected.sort(
                key=lambda item: read_field_value(item[1], field_name),
                reverse=(direction == self.DESC))
        start = self.first_result or 0
        stop = None if self.max_results is None else start + self.max_results
        return selected[start:stop]

    @staticmethod
    def _make_predicate(condition):
        if callable(condition):
            return condition
        if isinstance(condition, collections.abc.Mapping):
            required = dict(condition)

            def predicate(element):
                return all(
                    read_field_value(element, name) == value
                    for name, value in required.items())

            return predicate
        raise TypeError('a condition should be a callable or a mapping '
                        '(got {!a})'.format(condition))


class TransferObjectCollection(TransferObject, collections.abc.Collection):

    """
    An ordered, keyed (by `int` and/or `str` keys) container of transfer
    objects.

    Constructor args:
        `elements` (optional):
            A mapping (its keys are kept) or an iterable (its items get
            the keys 0, 1, 2...) of elements.

    Subclasses can set the `element_type` class attribute to a
    `TransferObject` subclass -- then `from_dict()` converts mapping
    elements to instances of that class.

    Iterating over a collection yields its elements (values); the `in`
    operator, `contains()`, `index_of()` and `remove_element()` compare
    elements by identity.  Methods that derive new collections never
    modify the original one.

    Predicates passed to `filter()`, `exists()`, `for_all()`,
    `find_first()` and `partition()` are called with two arguments:
    the element and its key.
    """

    element_type = None

    def __init__(self, elements=None):
        super().__init__()
        if elements is None:
            self._elements = {}
        elif isinstance(elements, collections.abc.Mapping):
            self._elements = dict(elements)
        else:
            self._elements = dict(enumerate(elements))

    def __repr__(self):
        return '<{} {!r}>'.format(self.__class__.__qualname__, self._elements)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._elements == other._elements

    __hash__ = None

    #
    # Conversions

    @classmethod
    def from_dict(cls, data):
        """
        Make a collection from a list or a mapping of elements (see the
        `element_type` attribute).
        """
        return cls.get_marshaller().load_collection(cls, data)

    def to_dict(self):
        """Get a new `dict` that maps the keys to the elements converted to `dict`s."""
        return self.get_marshaller().dump_collection(self)

    def to_snake_case_dict(self):
        return self.get_marshaller().dump_collection(self, key_converter=to_snake)

    def to_list(self):
        return list(self.to_dict().values())

    def to_json(self):
        return self._dump_json(self.get_marshaller().dump_collection(
            self, as_list_if_sequential=True))

    def to_snake_case_json(self):
        return self._dump_json(self.get_marshaller().dump_collection(
            self, key_converter=to_snake, as_list_if_sequential=True))

    def to_entity(self, entity):
        """
        Convert each element to an entity (see: `TransferObject.to_entity()`).

        Returns:
            A `list` of the entities.
        """
        return [element.to_entity(entity) for element in self]

    #
    # Element access

    def __len__(self):
        return len(self._elements)

    def __iter__(self):
        return iter(list(self._elements.values()))

    def __contains__(self, element):
        return self.contains(element)

    def __getitem__(self, key):
        return self._elements[key]

    def __setitem__(self, key, element):
        self._elements[key] = element

    def __delitem__(self, key):
        del self._elements[key]

    def keys(self):
        return self._elements.keys()

    def values(self):
        return self._elements.values()

    def items(self):
        return self._elements.items()

    def count(self):
        return len(self._elements)

    def is_empty(self):
        return not self._elements

    def first(self):
        """Get the first element (or `None` if the collection is empty)."""
        return next(iter(self._elements.values()), None)

    def last(self):
        """Get the last element (or `None` if the collection is empty)."""
        return next(reversed(self._elements.values()), None)

    def get(self, key, default=None):
        return self._elements.get(key, default)

    def get_keys(self):
        return list(self._elements)

    def get_values(self):
        return list(self._elements.values())

    def get_elements(self):
        """Get a shallow copy of the underlying `dict` of elements."""
        return dict(self._elements)

    def contains_key(self, key):
        return key in self._elements

    def contains(self, element):
        return any(el is element for el in self._elements.values())

    def index_of(self, element):
        """Get the key of the given element (or `None` if it is absent)."""
        for key, el in self._elements.items():
            if el is element:
                return key
        return None

    #
    # Modification

    def add(self, element):
        """Append the element (its key is the greatest `int` key + 1, or 0)."""
        int_keys = [key for key in self._elements if isinstance(key, int)]
        self._elements[max(int_keys) + 1 if int_keys else 0] = element

    def set(self, key, element):
        self._elements[key] = element

    def remove(self, key):
        """Remove the element with the given key; return it (or `None` if absent)."""
        return self._elements.pop(key, None)

    def remove_element(self, element):
        """Remove the given element; return whether it was present."""
        key = self.index_of(element)
        if key is None:
            return False
        del self._elements[key]
        return True

    def clear(self):
        self._elements.clear()

    #
    # Queries and derived collections

    def map(self, func):
        """Get a new collection of `func(element)` results (keys are kept)."""
        return self._create_from({key: func(el) for key, el in self._elements.items()})

    def filter(self, predicate):
        """Get a new collection of the elements satisfying `predicate(element, key)`."""
        return self._create_from({
            key: el for key, el in self._elements.items()
            if predicate(el, key)})

    def partition(self, predicate):
        """
        Split the elements into two new collections.

        Returns:
            A pair: the collection of the elements satisfying
            `predicate(element, key)`, and the collection of the
            remaining ones (in both, the keys are kept).
        """
        matching = {}
        non_matching = {}
        for key, el in self._elements.items():
            (matching if predicate(el, key) else non_matching)[key] = el
        return self._create_from(matching), self._create_from(non_matching)

    def exists(self, predicate):
        return any(predicate(el, key) for key, el in self._elements.items())

    def for_all(self, predicate):
        return all(predicate(el, key) for key, el in self._elements.items())

    def find_first(self, predicate):
        for key, el in self._elements.items():
            if predicate(el, key):
                return el
        return None

    def reduce(self, func, initial=None):
        return functools.reduce(func, self._elements.values(), initial)

    def slice(self, offset, length=None):
        """
        Get a `dict` of a part of the elements (keys are kept).

        The semantics of `offset` and `length` (including negative ones)
        are the same as of `items[offset:][:length]`.
        """
        items = list(self._elements.items())[offset:]
        if length is not None:
            items = items[:length]
        return dict(items)

    def matching(self, criteria):
        """Get a new collection of the elements selected with the given `Criteria`."""
        return self._create_from(dict(criteria.apply(self._elements.items())))

    def _create_from(self, elements):
        return type(self)(elements)
