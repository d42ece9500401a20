# Copyright (c) 2025 NASK. All rights reserved.

"""
This module contains regular expression objects used in other parts
of the *transferobj* library.
"""


import re


#: RFC 3339 (a profile of ISO 8601) combined date and time; a few
#: popular relaxations are accepted as well: the space or lowercase
#: `t` as the date/time separator, omitted seconds, lowercase `z`,
#: time zone designators without the colon or without the minute part,
#: and an omitted time zone designator.
#:
#: Used by :func:`transferobj.datetime_helpers.parse_rfc3339`.
RFC3339_DATETIME_REGEX = re.compile(r'''
    \A
    (?P<year>
        [0-9]{4}
    )
    -
    (?P<month>
        [0-9]{2}
    )
    -
    (?P<day>
        [0-9]{2}
    )
    [Tt\ ]
    (?P<hour>
        [0-9]{2}
    )
    :
    (?P<minute>
        [0-9]{2}
    )
    (?:
        :
        (?P<second>
            [0-9]{2}
        )
        (?:
            [.,]
            (?P<secondfraction>
                [0-9]+
            )
        )?
    )?
    (?P<tz>
        (?P<tzzulu>
            [Zz]
        )
    |
        (?P<tzsign>
            [+\-]
        )
        (?P<tzhour>
            [0-9]{2}
        )
        (?:
            :?
            (?P<tzminute>
                [0-9]{2}
            )
        )?
    )?
    \Z
''', re.ASCII | re.VERBOSE)
