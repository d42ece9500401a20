# Copyright (c) 2025 NASK. All rights reserved.

import datetime
import os
import tempfile
import unittest
from unittest.mock import patch

from unittest_expander import (
    expand,
    foreach,
    param,
)

from transferobj.config import (
    CONFIG_PATH_ENVIRON_VAR,
    Config,
    ConfigError,
    ConfigSection,
    NoConfigOptionError,
    _load_default_marshalling_config,
    default_marshalling_config,
    get_marshalling_config,
    parse_config_spec,
)
from transferobj.tests._example_classes import SimpleUserDto


CONFIG_SPEC = '''
    [spam]
    foo = 42 :: int     ; some comment
    bar = xyz
    flag = false :: bool
    ratio = 0.5 :: float
    data = {"a": [1, 2]} :: json
    literal = ('x', 1) :: py
    required_opt :: int
'''


class _ConfigFileMixin(object):

    def make_config_file(self, content):
        fd, path = tempfile.mkstemp(suffix='.conf')
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path


@expand
class Test__parse_config_spec(unittest.TestCase):

    def test_parsed(self):
        parsed = parse_config_spec(CONFIG_SPEC)
        self.assertEqual(list(parsed), ['spam'])
        opt_specs = parsed['spam']
        self.assertEqual(
            list(opt_specs),
            ['foo', 'bar', 'flag', 'ratio', 'data', 'literal', 'required_opt'])
        self.assertEqual(opt_specs['foo'].default, '42')
        self.assertEqual(opt_specs['foo'].converter_spec, 'int')
        self.assertEqual(opt_specs['bar'].default, 'xyz')
        self.assertEqual(opt_specs['bar'].converter_spec, 'str')
        self.assertEqual(opt_specs['data'].default, '{"a": [1, 2]}')
        self.assertTrue(opt_specs['required_opt'].required)
        self.assertFalse(opt_specs['foo'].required)

    @foreach(
        param('foo = 1').label('option outside any section'),
        param('[a]\nfoo = 1\n[a]\nbar = 2').label('duplicate section'),
        param('[a]\n= 1').label('no option name'),
        param('[a]\nfoo bar = 1').label('whitespace in option name'),
    )
    def test_malformed(self, config_spec):
        with self.assertRaises(ConfigError):
            parse_config_spec(config_spec)


class Test__Config(_ConfigFileMixin, unittest.TestCase):

    def setUp(self):
        patcher = patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop(CONFIG_PATH_ENVIRON_VAR, None)

    def test_defaults_and_settings(self):
        config = Config(CONFIG_SPEC, settings={'spam.required_opt': '7', 'spam.flag': 'yes'})
        self.assertEqual(config, {
            'spam': {
                'foo': 42,
                'bar': 'xyz',
                'flag': True,
                'ratio': 0.5,
                'data': {'a': [1, 2]},
                'literal': ('x', 1),
                'required_opt': 7,
            },
        })
        self.assertIsInstance(config['spam'], ConfigSection)
        self.assertEqual(config['spam'].sect_name, 'spam')

    def test_settings_with_already_converted_values(self):
        config = Config(CONFIG_SPEC, settings={'spam.required_opt': 7, 'spam.flag': True})
        self.assertEqual(config['spam']['required_opt'], 7)
        self.assertIs(config['spam']['flag'], True)

    def test_missing_required(self):
        with self.assertRaisesRegex(ConfigError, r'missing required.*required_opt'):
            Config(CONFIG_SPEC)

    def test_illegal_option_in_settings(self):
        with self.assertRaisesRegex(ConfigError, r'illegal options.*nonexistent'):
            Config(CONFIG_SPEC, settings={'spam.required_opt': '1', 'spam.nonexistent': '1'})

    def test_settings_of_other_sections_are_ignored(self):
        config = Config(CONFIG_SPEC, settings={'spam.required_opt': '1', 'pyramid.foo': 'x', 'x': 'y'})
        self.assertEqual(list(config), ['spam'])

    def test_conversion_error(self):
        with self.assertRaisesRegex(ConfigError, r'spam\.foo.*int'):
            Config(CONFIG_SPEC, settings={'spam.required_opt': '1', 'spam.foo': 'not-an-int'})

    def test_unknown_converter(self):
        with self.assertRaisesRegex(ConfigError, r'unknown converter `spam_conv`'):
            Config('[a]\nfoo = 1 :: spam_conv')

    def test_config_file(self):
        path = self.make_config_file(
            '[spam]\n'
            'required_opt = 3\n'
            'bar = from file\n'
            '\n'
            '[other_section]\n'
            'whatever = 1\n')
        config = Config(CONFIG_SPEC, settings={'spam.bar': 'from settings'}, config_path=path)
        self.assertEqual(config['spam']['required_opt'], 3)
        self.assertEqual(config['spam']['bar'], 'from settings')
        config = Config(CONFIG_SPEC, config_path=path)
        self.assertEqual(config['spam']['bar'], 'from file')

    def test_config_file_from_environ(self):
        path = self.make_config_file('[spam]\nrequired_opt = 5\n')
        os.environ[CONFIG_PATH_ENVIRON_VAR] = path
        self.assertEqual(Config(CONFIG_SPEC)['spam']['required_opt'], 5)

    def test_config_file_with_illegal_option(self):
        path = self.make_config_file('[spam]\nrequired_opt = 5\nillegal = 1\n')
        with self.assertRaisesRegex(ConfigError, r'illegal options.*illegal'):
            Config(CONFIG_SPEC, config_path=path)

    def test_nonexistent_config_file(self):
        with self.assertRaisesRegex(ConfigError, r'cannot read config file'):
            Config(CONFIG_SPEC, config_path='/nonexistent/dir/transferobj.conf')

    def test_section(self):
        section = Config.section('[a]\nfoo = 1 :: int')
        self.assertEqual(section, ConfigSection('a', {'foo': 1}))

    def test_section_requires_exactly_one_section(self):
        with self.assertRaises(ConfigError):
            Config.section('[a]\nfoo = 1\n[b]\nbar = 2')


class Test__ConfigSection(unittest.TestCase):

    def test_missing_option(self):
        section = ConfigSection('sect', {'a': 1})
        with self.assertRaises(NoConfigOptionError) as cm:
            section['b']
        self.assertIsInstance(cm.exception, KeyError)
        self.assertIsInstance(cm.exception, ConfigError)
        self.assertEqual(cm.exception.opt_name, 'b')
        self.assertEqual(cm.exception.sect_name, 'sect')
        self.assertIsNone(section.get('b'))

    def test_equality(self):
        self.assertEqual(ConfigSection('a', {'x': 1}), {'x': 1})
        self.assertEqual(ConfigSection('a', {'x': 1}), ConfigSection('a', {'x': 1}))
        self.assertNotEqual(ConfigSection('a', {'x': 1}), ConfigSection('b', {'x': 1}))


class Test__get_marshalling_config(_ConfigFileMixin, unittest.TestCase):

    def setUp(self):
        patcher = patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop(CONFIG_PATH_ENVIRON_VAR, None)

    def test_defaults(self):
        config = get_marshalling_config()
        self.assertEqual(config.sect_name, 'transferobj')
        self.assertIs(config['json_ensure_ascii'], False)
        self.assertIs(config['json_sort_keys'], False)
        self.assertIsNone(config['json_indent'])
        self.assertEqual(config['format_marker'], ':')
        self.assertEqual(config['format_separator'], '\n')
        self.assertEqual(
            datetime.datetime(2023, 1, 1, tzinfo=config['default_timezone']).utcoffset(),
            datetime.timedelta(0))

    def test_from_file(self):
        path = self.make_config_file(
            '[transferobj]\n'
            'json_indent = 2\n'
            'format_marker = @\n'
            "format_separator = ' | '\n"
            'default_timezone = Europe/Warsaw\n')
        config = get_marshalling_config(config_path=path)
        self.assertEqual(config['json_indent'], 2)
        self.assertEqual(config['format_marker'], '@')
        self.assertEqual(config['format_separator'], ' | ')
        self.assertEqual(
            datetime.datetime(2023, 7, 1, tzinfo=config['default_timezone']).utcoffset(),
            datetime.timedelta(hours=2))

    def test_invalid_timezone(self):
        with self.assertRaisesRegex(ConfigError, r'default_timezone'):
            get_marshalling_config({'transferobj.default_timezone': 'Mars/Olympus_Mons'})


class Test__default_marshalling_config(_ConfigFileMixin, unittest.TestCase):

    def setUp(self):
        patcher = patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop(CONFIG_PATH_ENVIRON_VAR, None)
        _load_default_marshalling_config.cache_clear()
        self.addCleanup(_load_default_marshalling_config.cache_clear)

    def test_memoized_and_read_only(self):
        config = default_marshalling_config()
        self.assertIs(default_marshalling_config(), config)
        self.assertEqual(config['format_marker'], ':')
        with self.assertRaises(TypeError):
            config['format_marker'] = '#'
        with self.assertRaises(NoConfigOptionError):
            config['no_such_option']
        self.assertEqual(default_marshalling_config()['format_marker'], ':')

    def test_config_file_read_once(self):
        os.environ[CONFIG_PATH_ENVIRON_VAR] = self.make_config_file(
            '[transferobj]\njson_sort_keys = yes\n')
        with patch('transferobj.config.get_marshalling_config',
                   wraps=get_marshalling_config) as get_config_mock:
            self.assertIs(default_marshalling_config()['json_sort_keys'], True)
            self.assertEqual(SimpleUserDto(name='X', age=1).to_json(),
                             '{"age": 1, "name": "X"}')
            self.assertEqual(SimpleUserDto(name='Y', age=2).to_dict(),
                             {'name': 'Y', 'age': 2})
        self.assertEqual(get_config_mock.call_count, 1)

    def test_failure_memoized(self):
        os.environ[CONFIG_PATH_ENVIRON_VAR] = self.make_config_file(
            '[transferobj]\nno_such_option = 1\n')
        with patch('transferobj.config.get_marshalling_config',
                   wraps=get_marshalling_config) as get_config_mock, \
             self.assertLogs('transferobj.config', 'ERROR'):
            for _ in range(3):
                with self.assertRaisesRegex(ConfigError, r'not available.*no_such_option') as cm:
                    SimpleUserDto(name='X').to_json()
                self.assertIsInstance(cm.exception.__cause__, ConfigError)
        self.assertEqual(get_config_mock.call_count, 1)
