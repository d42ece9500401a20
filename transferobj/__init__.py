# Copyright (c) 2025 NASK. All rights reserved.

"""
*transferobj* -- a transfer object (DTO) marshalling library.

Transfer objects are converted to/from plain dicts and JSON (with
camelCase <-> snake_case key conversion), and copied to entities
(instances of arbitrary classes).
"""

import logging

from transferobj.collection import (
    Criteria,
    TransferObjectCollection,
)
from transferobj.exceptions import (
    DateParseError,
    EntityNotFoundError,
    FieldResolutionError,
    MalformedPayloadError,
    TransferObjectError,
    UndefinedAttributeError,
)
from transferobj.fields import (
    Field,
    FieldDescriptor,
    ValueKind,
    fields,
)
from transferobj.transfer_object import TransferObject


__all__ = [
    'Criteria',
    'DateParseError',
    'EntityNotFoundError',
    'Field',
    'FieldDescriptor',
    'FieldResolutionError',
    'MalformedPayloadError',
    'TransferObject',
    'TransferObjectCollection',
    'TransferObjectError',
    'UndefinedAttributeError',
    'ValueKind',
    'fields',
]


logging.getLogger(__name__).addHandler(logging.NullHandler())
