# Copyright (c) 2025 NASK. All rights reserved.

"""
The date codec: conversions between `datetime.datetime` objects and
their RFC 3339 string representations.
"""


import datetime

from dateutil.tz import gettz

from transferobj.exceptions import DateParseError
from transferobj.regexes import RFC3339_DATETIME_REGEX


__all__ = [
    'UTC',
    'resolve_timezone',
    'format_rfc3339',
    'parse_rfc3339',
]


UTC = datetime.timezone.utc


def resolve_timezone(name):
    """
    Get a `datetime.tzinfo` object for the given time zone name.

    Args:
        `name` (str):
            A time zone name, e.g. `'UTC'` or `'Europe/Warsaw'`.

    Returns:
        A `datetime.tzinfo` instance (obtained with
        `dateutil.tz.gettz()`).

    Raises:
        `ValueError` if the name is empty or unknown.

    >>> resolve_timezone('UTC').utcoffset(None)
    datetime.timedelta(0)
    >>> resolve_timezone('No/Such_Zone')
    Traceback (most recent call last):
      ...
    ValueError: unknown time zone 'No/Such_Zone'
    """
    tz = gettz(name) if name.strip() else None
    if tz is None:
        raise ValueError('unknown time zone {!a}'.format(name))
    return tz


def format_rfc3339(dt, default_tz=UTC):
    """
    Format a date+time as an RFC 3339 string (with an explicit offset).

    Args:
        `dt` (datetime.datetime):
            The date+time object.  Note: the fraction of the second is
            dropped.

    Kwargs:
        `default_tz` (datetime.tzinfo; default: UTC):
            The time zone in which a naive `dt` is interpreted.

    Returns:
        A `str`, such as `'2023-10-27T10:00:00+00:00'`.

    >>> format_rfc3339(datetime.datetime(2023, 10, 27, 10, 0))
    '2023-10-27T10:00:00+00:00'
    >>> format_rfc3339(datetime.datetime(2023, 10, 27, 10, 0, 12, 345678, tzinfo=UTC))
    '2023-10-27T10:00:12+00:00'
    >>> cest = datetime.timezone(datetime.timedelta(hours=2))
    >>> format_rfc3339(datetime.datetime(2023, 6, 1, 8, 30), default_tz=cest)
    '2023-06-01T08:30:00+02:00'
    """
    if dt.tzinfo is None or dt.utcoffset() is None:
        dt = dt.replace(tzinfo=default_tz)
    return dt.isoformat(timespec='seconds')


def parse_rfc3339(s, default_tz=UTC):
    """
    Parse an RFC 3339 date+time string.

    Args:
        `s` (str):
            The string to be parsed (see the docs of
            `transferobj.regexes.RFC3339_DATETIME_REGEX` for the
            accepted relaxations of the format).

    Kwargs:
        `default_tz` (datetime.tzinfo; default: UTC):
            The time zone assumed if `s` has no time zone designator.

    Returns:
        A time-zone-aware `datetime.datetime` (preserving the fixed
        offset specified in `s`).

    Raises:
        `transferobj.exceptions.DateParseError` (a `ValueError`
        subclass) for invalid input.

    >>> parse_rfc3339('2023-10-27T10:00:00+00:00')
    datetime.datetime(2023, 10, 27, 10, 0, tzinfo=datetime.timezone.utc)
    >>> parse_rfc3339('2023-10-27T10:00:00Z') == parse_rfc3339('2023-10-27 12:00+02:00')
    True
    >>> parse_rfc3339('2023-10-27T10:00:00.25-05:30').isoformat()
    '2023-10-27T10:00:00.250000-05:30'
    >>> parse_rfc3339('2016-12-31T23:59:60Z')  # leap second
    datetime.datetime(2016, 12, 31, 23, 59, 59, 999999, tzinfo=datetime.timezone.utc)
    >>> parse_rfc3339('2023-02-30T10:00:00Z')          # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    transferobj.exceptions.DateParseError: '2023-02-30T10:00:00Z' is not a valid ...
    """
    match = RFC3339_DATETIME_REGEX.match(s) if isinstance(s, str) else None
    if match is None:
        raise DateParseError(s)
    try:
        return _make_datetime_from_match(match, default_tz)
    except ValueError as exc:
        raise DateParseError(s) from exc


def _make_datetime_from_match(match, default_tz):
    g = match.groupdict()
    microsecond = 0
    if g['secondfraction']:
        fract_str = g['secondfraction']
        microsecond = (int(fract_str) * 1000000) // (10 ** len(fract_str))
    second = int(g['second'] or 0)
    if second == 60:
        # leap second -- not supported by `datetime`
        second = 59
        microsecond = 999999
    return datetime.datetime(
        int(g['year']),
        int(g['month']),
        int(g['day']),
        int(g['hour']),
        int(g['minute']),
        second,
        microsecond,
        tzinfo=_make_tzinfo_from_match(g, default_tz))


def _make_tzinfo_from_match(g, default_tz):
    if g['tzzulu']:
        return UTC
    if not g['tzsign']:
        return default_tz
    tzhour = int(g['tzhour'])
    tzminute = int(g['tzminute'] or 0)
    if tzhour > 23 or tzminute > 59:
        raise ValueError('time zone designator {!a} is out of range'.format(g['tz']))
    offset = datetime.timedelta(hours=tzhour, minutes=tzminute)
    if g['tzsign'] == '-':
        offset = -offset
    if not offset:
        return UTC
    return datetime.timezone(offset)
