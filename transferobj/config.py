# Copyright (c) 2025 NASK. All rights reserved.

r"""
Configuration of the *transferobj* library.

A *config spec* is a string in an INI-like format that specifies the
configuration options of a section, together with their defaults and
*converters* (names of functions that convert raw `str` values to the
actual option values), e.g.:

    [transferobj]
    json_sort_keys = false :: bool   ; comment
    json_indent = None :: py
    format_marker = :
    some_required_option :: int

* an option without `= <default>` is *required* (it must be specified
  in the config file or in the settings mapping);
* an option without `:: <converter>` uses the `str` converter;
* lines starting with `#` or `;` are comments (`;` preceded by
  whitespace begins a trailing comment).

The actual values are taken from (in the order of precedence):

* a Pyramid-like *settings* mapping (`'<section>.<option>'` -> raw
  `str` value),
* an INI config file (an explicitly given path or, if none, the path
  specified with the `TRANSFEROBJ_CONFIG` environment variable),
* the defaults from the config spec.
"""

import ast
import configparser
import dataclasses
import functools
import json
import os
import re
import threading
import types
from typing import Optional

from transferobj.datetime_helpers import resolve_timezone
from transferobj.log_helpers import get_logger


__all__ = [
    'ConfigError',
    'NoConfigOptionError',
    'ConfigSection',
    'Config',
    'parse_config_spec',
    'str_to_bool',
    'CONFIG_PATH_ENVIRON_VAR',
    'MARSHALLING_CONFIG_SPEC',
    'get_marshalling_config',
    'default_marshalling_config',
]


LOGGER = get_logger(__name__)


CONFIG_PATH_ENVIRON_VAR = 'TRANSFEROBJ_CONFIG'

MARSHALLING_CONFIG_SPEC = '''
    [transferobj]

    # options of `json.dumps()` used by `to_json()`/`to_snake_case_json()`
    json_ensure_ascii = false :: bool
    json_sort_keys = false :: bool
    json_indent = None :: py

    # defaults for `format()`
    format_marker = :
    format_separator = '\\n' :: py

    # the time zone of naive date+time values (when encoding)
    # and of date+time strings without a time zone designator
    # (when decoding)
    default_timezone = UTC :: timezone
'''


#
# Exceptions
#

class ConfigError(Exception):

    """
    A generic, `Config`-related, exception class.

    >>> print(ConfigError('Some Message'))
    [configuration-related error] Some Message
    """

    def __str__(self):
        return '[configuration-related error] ' + super().__str__()


class NoConfigOptionError(KeyError, ConfigError):

    """
    Raised when a nonexistent option is looked up in a `ConfigSection`.

    >>> exc = NoConfigOptionError('some_sect', 'some_opt')
    >>> isinstance(exc, KeyError) and isinstance(exc, ConfigError)
    True
    >>> print(exc)
    [configuration-related error] no option `some_opt` in section `some_sect`
    """

    def __init__(self, sect_name, opt_name):
        self.sect_name = sect_name
        self.opt_name = opt_name
        super().__init__('no option `{}` in section `{}`'.format(opt_name, sect_name))

    def __str__(self):
        return ConfigError.__str__(self)


#
# Config containers
#

class ConfigSection(dict):

    """
    A subclass of `dict` that represents a configuration section.

    It maps option names to (converted) option values, and keeps also
    the name of the section (as the `sect_name` attribute).

    >>> s = ConfigSection('some_sect', {'some_opt': 42})
    >>> s
    ConfigSection('some_sect', {'some_opt': 42})
    >>> s.sect_name
    'some_sect'
    >>> s['some_opt']
    42
    >>> s == {'some_opt': 42}
    True
    >>> s == ConfigSection('another_sect', {'some_opt': 42})
    False
    >>> s['another_opt']     # doctest: +ELLIPSIS
    Traceback (most recent call last):
      ...
    transferobj.config.NoConfigOptionError: [conf... `another_opt` in section `some_sect`
    """

    def __init__(self, sect_name, opt_name_to_value=None):
        self.sect_name = sect_name
        super().__init__(opt_name_to_value or {})

    def __missing__(self, key):
        raise NoConfigOptionError(self.sect_name, key)

    def __eq__(self, other):
        if isinstance(other, ConfigSection) and other.sect_name != self.sect_name:
            return False
        return super().__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({!r}, {})'.format(
            self.__class__.__qualname__,
            self.sect_name,
            super().__repr__())


def str_to_bool(s):
    """
    Return True or False, given one of the known strings.

    >>> str_to_bool('Yes'), str_to_bool('t'), str_to_bool('on'), str_to_bool('1')
    (True, True, True, True)
    >>> str_to_bool('nO'), str_to_bool('false'), str_to_bool('off'), str_to_bool('0')
    (False, False, False, False)
    >>> str_to_bool('unknown')        # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    ValueError: ...
    """
    if not isinstance(s, str):
        raise TypeError('{!a} is not a str'.format(s))
    try:
        return _STR_TO_BOOL[s.lower()]
    except KeyError:
        raise ValueError('{!a} cannot be converted to a bool'.format(s)) from None

_STR_TO_BOOL = {
    '1': True, 'y': True, 'yes': True, 't': True, 'true': True, 'on': True,
    '0': False, 'n': False, 'no': False, 'f': False, 'false': False, 'off': False,
}


def _py_literal(s):
    return ast.literal_eval(s.strip())


#
# Config spec parsing
#

@dataclasses.dataclass(frozen=True)
class _OptSpec:
    name: str
    default: Optional[str]
    converter_spec: str

    @property
    def required(self) -> bool:
        return self.default is None


_SECT_HEADER_REGEX = re.compile(r'\A\[(?P<sect_name>[^\[\]\s]+)\]\Z')
_OPT_REGEX = re.compile(r'''
    \A
    (?P<name>
        [^=:\s]+
    )
    \s*
    (?:
        =
        (?P<default>
            .*?
        )
    )?
    \s*
    (?:
        ::
        \s*
        (?P<converter_spec>
            \w+
        )
    )?
    \Z
''', re.VERBOSE)
_TRAILING_COMMENT_REGEX = re.compile(r'\s;.*\Z')


def parse_config_spec(config_spec):
    """
    Parse the given *config spec* string.

    Returns:
        A `dict` that maps section names to `dict`s that map option
        names to `_OptSpec` instances.

    Raises:
        `ConfigError` if the *config spec* is malformed.

    >>> parsed = parse_config_spec('''
    ...     [first]
    ...     foo = 42 :: int  ; comment
    ...     bar = 43
    ...     # comment
    ...     spam :: bool
    ... ''')
    >>> list(parsed)
    ['first']
    >>> parsed['first']['foo']
    _OptSpec(name='foo', default='42', converter_spec='int')
    >>> parsed['first']['bar']
    _OptSpec(name='bar', default='43', converter_spec='str')
    >>> parsed['first']['spam'].required
    True
    """
    result = {}
    current_sect = None
    for raw_line in config_spec.splitlines():
        line = _TRAILING_COMMENT_REGEX.sub('', raw_line).strip()
        if not line or line.startswith(('#', ';')):
            continue
        sect_match = _SECT_HEADER_REGEX.match(line)
        if sect_match:
            sect_name = sect_match.group('sect_name')
            if sect_name in result:
                raise ConfigError('duplicate section `{}` in config spec'.format(sect_name))
            current_sect = result[sect_name] = {}
            continue
        opt_match = _OPT_REGEX.match(line)
        if current_sect is None or not opt_match:
            raise ConfigError('malformed config spec line: {!a}'.format(raw_line))
        name = opt_match.group('name').lower()
        default = opt_match.group('default')
        current_sect[name] = _OptSpec(
            name=name,
            default=(default.strip() if default is not None else None),
            converter_spec=(opt_match.group('converter_spec') or Config.DEFAULT_CONVERTER_SPEC))
    return result


#
# The actual config machinery
#

class Config(dict):

    """
    A `dict` that maps section names to `ConfigSection` instances.

    Constructor args/kwargs:
        `config_spec` (str):
            The *config spec* (see the module docs).
        `settings` (optional; a mapping or `None`):
            A Pyramid-like settings mapping.
        `config_path` (optional; a path or `None`):
            The path of an INI config file; if not given, the value
            of the `TRANSFEROBJ_CONFIG` environment variable (if any)
            is used.

    Raises:
        `ConfigError` for malformed specs, illegal or missing options,
        unreadable config files and failed value conversions.

    >>> config = Config('''
    ...     [spam]
    ...     foo = 42 :: int
    ...     bar = 43
    ...     flag = no :: bool
    ... ''', settings={'spam.bar': 'xyz', 'spam.flag': 'yes', 'other.opt': 'ignored'})
    >>> config
    {'spam': ConfigSection('spam', {'foo': 42, 'bar': 'xyz', 'flag': True})}

    >>> Config('[spam]\\nfoo :: int')  # doctest: +ELLIPSIS
    Traceback (most recent call last):
      ...
    transferobj.config.ConfigError: [configuration-related error] missing required ...
    """

    DEFAULT_CONVERTER_SPEC = 'str'
    BASIC_CONVERTERS = {
        'str': str,
        'bool': str_to_bool,
        'int': int,
        'float': float,
        'py': _py_literal,
        'json': json.loads,
        'timezone': resolve_timezone,
    }

    def __init__(self, config_spec, settings=None, config_path=None):
        sect_name_to_opt_specs = parse_config_spec(config_spec)
        file_values = self._read_config_file(config_path, sect_name_to_opt_specs)
        settings_values = self._convert_settings_mapping(settings, sect_name_to_opt_specs)
        super().__init__()
        for sect_name, opt_specs in sect_name_to_opt_specs.items():
            raw_values = {
                opt_name: opt_spec.default
                for opt_name, opt_spec in opt_specs.items()}
            raw_values.update(file_values.get(sect_name, {}))
            raw_values.update(settings_values.get(sect_name, {}))
            self[sect_name] = self._make_config_section(sect_name, opt_specs, raw_values)

    @classmethod
    def section(cls, config_spec, settings=None, config_path=None):
        """
        Get a `ConfigSection` for a *config spec* with exactly one section.

        >>> Config.section('[spam]\\nfoo = 42 :: int')
        ConfigSection('spam', {'foo': 42})
        """
        config = cls(config_spec, settings=settings, config_path=config_path)
        if len(config) != 1:
            raise ConfigError('expected a config spec with exactly one '
                              'section (got {})'.format(len(config)))
        [config_section] = config.values()
        return config_section

    def _read_config_file(self, config_path, sect_name_to_opt_specs):
        if config_path is None:
            config_path = os.environ.get(CONFIG_PATH_ENVIRON_VAR) or None
        if config_path is None:
            return {}
        parser = configparser.ConfigParser(interpolation=None)
        try:
            with open(config_path, encoding='utf-8') as f:
                parser.read_file(f)
        except (OSError, UnicodeError, configparser.Error) as exc:
            raise ConfigError('cannot read config file {!a} ({})'.format(
                str(config_path), exc)) from exc
        LOGGER.info('configuration read from %a', str(config_path))
        file_values = {}
        for sect_name, opt_specs in sect_name_to_opt_specs.items():
            if not parser.has_section(sect_name):
                continue
            sect_values = file_values[sect_name] = dict(parser.items(sect_name))
            self._verify_opt_names(sect_name, sect_values, opt_specs, str(config_path))
        return file_values

    def _convert_settings_mapping(self, settings, sect_name_to_opt_specs):
        settings_values = {}
        if settings is None:
            return settings_values
        for key, value in settings.items():
            sect_name, dot, opt_name = key.partition('.')
            if not dot or sect_name not in sect_name_to_opt_specs:
                # not our concern (e.g., some Pyramid-specific setting)
                continue
            settings_values.setdefault(sect_name, {})[opt_name.lower()] = value
        for sect_name, sect_values in settings_values.items():
            self._verify_opt_names(sect_name, sect_values,
                                   sect_name_to_opt_specs[sect_name], 'settings')
        return settings_values

    @staticmethod
    def _verify_opt_names(sect_name, sect_values, opt_specs, source_descr):
        illegal = sorted(set(sect_values).difference(opt_specs))
        if illegal:
            raise ConfigError('illegal options in section `{}` (from {}): {}'.format(
                sect_name,
                source_descr,
                ', '.join(map(ascii, illegal))))

    def _make_config_section(self, sect_name, opt_specs, raw_values):
        missing = sorted(
            opt_name for opt_name, raw in raw_values.items()
            if raw is None)
        if missing:
            raise ConfigError('missing required options in section `{}`: {}'.format(
                sect_name,
                ', '.join(missing)))
        opt_name_to_value = {}
        for opt_name, raw in raw_values.items():
            opt_spec = opt_specs[opt_name]
            converter = self._get_converter(sect_name, opt_spec)
            if not isinstance(raw, str):
                # (a settings mapping may contain already converted values)
                opt_name_to_value[opt_name] = raw
                continue
            try:
                opt_name_to_value[opt_name] = converter(raw)
            except (ValueError, TypeError, SyntaxError) as exc:
                raise ConfigError('error when converting the value {!a} of option '
                                  '`{}.{}` with converter `{}` ({})'.format(
                                      raw, sect_name, opt_name,
                                      opt_spec.converter_spec, exc)) from exc
        return ConfigSection(sect_name, opt_name_to_value)

    def _get_converter(self, sect_name, opt_spec):
        try:
            return self.BASIC_CONVERTERS[opt_spec.converter_spec]
        except KeyError:
            raise ConfigError('unknown converter `{}` (for option `{}.{}`)'.format(
                opt_spec.converter_spec, sect_name, opt_spec.name)) from None


#
# The library's own configuration
#

def get_marshalling_config(settings=None, config_path=None):
    """
    Get the `[transferobj]` config section.

    >>> config = get_marshalling_config({'transferobj.json_sort_keys': 'yes'})
    >>> config['json_sort_keys'], config['json_ensure_ascii'], config['json_indent']
    (True, False, None)
    >>> config['format_marker'], config['format_separator']
    (':', '\\n')
    """
    return Config.section(MARSHALLING_CONFIG_SPEC, settings=settings, config_path=config_path)


def default_marshalling_config():
    """
    Get the process-wide default `[transferobj]` config section.

    Returns:
        A read-only view (`types.MappingProxyType`) of the section.

    Raises:
        `ConfigError` if the configuration cannot be obtained.

    The configuration (including the config file, if any) is read only
    once; if that fails, every call raises `ConfigError` (chained to
    the original error) without reading anything again.
    """
    with _default_marshalling_config_lock:
        config, error = _load_default_marshalling_config()
    if error is not None:
        raise ConfigError('the default marshalling configuration is not '
                          'available ({})'.format(error.args[0])) from error
    return config


_default_marshalling_config_lock = threading.Lock()


@functools.lru_cache(maxsize=None)
def _load_default_marshalling_config():
    try:
        return types.MappingProxyType(get_marshalling_config()), None
    except ConfigError as exc:
        LOGGER.error('cannot load the default marshalling configuration: %s', exc)
        return None, exc
