# Copyright (c) 2025 NASK. All rights reserved.

import datetime
import json
import unittest

from unittest_expander import (
    expand,
    foreach,
    param,
)

from transferobj.config import get_marshalling_config
from transferobj.datetime_helpers import UTC
from transferobj.exceptions import (
    DateParseError,
    MalformedPayloadError,
)
from transferobj.tests._example_classes import (
    ComplexDto,
    DateDto,
    ExtendedUserDto,
    ForwardRefNodeDto,
    OptionalDateDto,
    ProfileDto,
    SimpleUserDto,
    SnakeCaseDto,
    SnakeNamedDto,
    TeamDto,
    UserCollection,
    WithSetterDto,
)
from transferobj.tests._generic_helpers import TestCaseMixin


class Test__TransferObject__dicts(TestCaseMixin, unittest.TestCase):

    def test_simple(self):
        user = SimpleUserDto.from_dict({'name': 'John', 'age': 30})
        self.assertIsInstance(user, SimpleUserDto)
        self.assertEqual(user.name, 'John')
        self.assertEqual(user.age, 30)
        self.assertEqualIncludingTypes(user.to_dict(), {'name': 'John', 'age': 30})

    def test_snake_case_input(self):
        dto = SnakeCaseDto.from_dict({'first_name': 'John', 'last_name': 'Doe'})
        self.assertEqual((dto.firstName, dto.lastName), ('John', 'Doe'))
        self.assertEqualIncludingTypes(
            dto.to_dict(),
            {'firstName': 'John', 'lastName': 'Doe'})
        self.assertEqualIncludingTypes(
            dto.to_snake_case_dict(),
            {'first_name': 'John', 'last_name': 'Doe'})

    def test_mixed_case_input(self):
        dto = SnakeCaseDto.from_dict({'firstName': 'John', 'last_name': 'Doe'})
        self.assertEqual((dto.firstName, dto.lastName), ('John', 'Doe'))

    def test_snake_named_fields(self):
        dto = SnakeNamedDto.from_dict({'first_name': 'Jane', 'homeAddress': 'Kraków'})
        self.assertEqual((dto.first_name, dto.home_address), ('Jane', 'Kraków'))
        self.assertEqualIncludingTypes(
            dto.to_dict(),
            {'firstName': 'Jane', 'homeAddress': 'Kraków'})

    def test_missing_and_unknown_keys(self):
        user = SimpleUserDto.from_dict({'name': 'John', 'nickname': 'Johnny'})
        self.assertIsNone(user.age)
        self.assertEqualIncludingTypes(user.to_dict(), {'name': 'John', 'age': None})
        self.assertEqual(SnakeNamedDto.from_dict({}).home_address, 'unknown')

    def test_explicit_none(self):
        dto = SnakeNamedDto.from_dict({'first_name': 'Jane', 'home_address': None})
        self.assertIsNone(dto.home_address)

    def test_inherited_fields(self):
        dto = ExtendedUserDto.from_dict({'name': 'John', 'age': 30.5, 'email': 'j@x.org'})
        self.assertEqualIncludingTypes(
            dto.to_dict(),
            {'name': 'John', 'age': 30.5, 'email': 'j@x.org'})

    def test_nested(self):
        dto = ComplexDto.from_dict({
            'user': {'name': 'John', 'age': 30},
            'role': 'admin',
        })
        self.assertIsInstance(dto.user, SimpleUserDto)
        self.assertEqual(dto.user, SimpleUserDto(name='John', age=30))
        self.assertEqualIncludingTypes(dto.to_dict(), {
            'user': {'name': 'John', 'age': 30},
            'role': 'admin',
        })

    def test_nested_self_reference(self):
        node = ForwardRefNodeDto.from_dict({'label': 'a', 'child': {'label': 'b'}})
        self.assertIsInstance(node.child, ForwardRefNodeDto)
        self.assertIsNone(node.child.child)
        self.assertEqualIncludingTypes(node.to_dict(), {
            'label': 'a',
            'child': {'label': 'b', 'child': None},
        })

    def test_nested_collection(self):
        team = TeamDto.from_dict({
            'team_name': 'Core',
            'members': [{'name': 'John', 'age': 30}, {'name': 'Jane', 'age': 25}],
            'leader': {'name': 'Ann', 'age': 40},
            'tags': ['x', 'y'],
        })
        self.assertIsInstance(team.members, UserCollection)
        self.assertEqual(team.members.count(), 2)
        self.assertEqual(team.members.first(), SimpleUserDto(name='John', age=30))
        self.assertIsInstance(team.leader, SimpleUserDto)
        self.assertEqualIncludingTypes(team.to_snake_case_dict(), {
            'team_name': 'Core',
            'members': [{'name': 'John', 'age': 30}, {'name': 'Jane', 'age': 25}],
            'leader': {'name': 'Ann', 'age': 40},
            'tags': ['x', 'y'],
        })

    def test_sequences_and_mappings_of_transfer_objects(self):
        profile = ProfileDto.from_dict({
            'nick_name': 'jd',
            'history': [{'created_at': '2023-10-27T10:00:00Z'}],
            'scores': {'math_score': 5},
        })
        [entry] = profile.history
        self.assertIsInstance(entry, DateDto)
        self.assertEqual(entry.createdAt,
                         datetime.datetime(2023, 10, 27, 10, 0, tzinfo=UTC))
        self.assertEqualIncludingTypes(profile.to_dict(), {
            'nickName': 'jd',
            'settings': {},
            'metadata': {},
            'history': [{'createdAt': '2023-10-27T10:00:00+00:00'}],
            'scores': {'mathScore': 5},
        })

    def test_opaque_field(self):
        profile = ProfileDto.from_dict({
            'nick_name': 'jd',
            'settings': {'dark_mode': {'some_key': True}, 'fontSize': 12},
            'metadata': {'last_login': {'ip_address': '10.0.0.1'}},
        })
        self.assertEqualIncludingTypes(
            profile.settings,
            {'dark_mode': {'some_key': True}, 'fontSize': 12})
        self.assertEqualIncludingTypes(
            profile.metadata,
            {'lastLogin': {'ipAddress': '10.0.0.1'}})
        snake = profile.to_snake_case_dict()
        self.assertEqualIncludingTypes(
            snake['settings'],
            {'dark_mode': {'some_key': True}, 'fontSize': 12})
        self.assertEqualIncludingTypes(
            snake['metadata'],
            {'last_login': {'ip_address': '10.0.0.1'}})

    def test_setters_used_when_loading(self):
        dto = WithSetterDto.from_dict({'name': '  john doe ', 'email': 'John@Example.COM'})
        self.assertEqual(dto.name, 'John Doe')
        self.assertEqual(dto.email, 'john@example.com')

    def test_to_dict_returns_new_objects(self):
        profile = ProfileDto(nickName='jd', metadata={'a': [1]})
        result = profile.to_dict()
        result['metadata']['a'].append(2)
        self.assertEqual(profile.metadata, {'a': [1]})

    def test_source_not_mutated(self):
        data = {'user': {'name': 'John', 'age': 30}, 'role': 'admin'}
        ComplexDto.from_dict(data)
        self.assertEqual(data, {'user': {'name': 'John', 'age': 30}, 'role': 'admin'})

    @staticmethod
    def _not_a_mapping_cases():
        return [[1, 2], 'text', 42, None]

    def test_not_a_mapping(self):
        for data in self._not_a_mapping_cases():
            with self.subTest(data=data):
                with self.assertRaises(MalformedPayloadError):
                    SimpleUserDto.from_dict(data)


@expand
class Test__TransferObject__dates(TestCaseMixin, unittest.TestCase):

    @foreach(
        param('2023-10-27T10:00:00+00:00',
              expected=datetime.datetime(2023, 10, 27, 10, 0, tzinfo=UTC),
              expected_str='2023-10-27T10:00:00+00:00'),
        param('2023-10-27T10:00:00Z',
              expected=datetime.datetime(2023, 10, 27, 10, 0, tzinfo=UTC),
              expected_str='2023-10-27T10:00:00+00:00'),
        param('2023-10-27T12:30:00+02:00',
              expected=datetime.datetime(
                  2023, 10, 27, 12, 30,
                  tzinfo=datetime.timezone(datetime.timedelta(hours=2))),
              expected_str='2023-10-27T12:30:00+02:00'),
        param('2023-10-27T10:00:00',
              expected=datetime.datetime(2023, 10, 27, 10, 0, tzinfo=UTC),
              expected_str='2023-10-27T10:00:00+00:00'),
    )
    def test_valid(self, raw, expected, expected_str):
        dto = DateDto.from_dict({'created_at': raw})
        self.assertEqual(dto.createdAt, expected)
        self.assertEqual(dto.createdAt.utcoffset(), expected.utcoffset())
        self.assertEqualIncludingTypes(dto.to_dict(), {'createdAt': expected_str})

    @foreach(
        param('not-a-date'),
        param('2023-13-01T10:00:00Z'),
        param('2023-02-30T10:00:00Z'),
        param('2023-10-27'),
        param(''),
    )
    def test_invalid(self, raw):
        with self.assertRaises(DateParseError) as cm:
            DateDto.from_dict({'createdAt': raw})
        self.assertIsInstance(cm.exception, ValueError)
        self.assertEqual(cm.exception.invalid_value, raw)
        self.assertIn("'createdAt'", str(cm.exception))

    def test_datetime_instance_kept(self):
        dt = datetime.datetime(2023, 1, 1, tzinfo=UTC)
        self.assertIs(DateDto.from_dict({'createdAt': dt}).createdAt, dt)

    def test_naive_datetime_dumped_as_utc(self):
        dto = DateDto(createdAt=datetime.datetime(2023, 10, 27, 10, 0))
        self.assertEqual(dto.to_dict(), {'createdAt': '2023-10-27T10:00:00+00:00'})

    def test_optional_dates(self):
        dto = OptionalDateDto.from_dict({'createdAt': None})
        self.assertIsNone(dto.createdAt)
        self.assertEqual(dto.to_dict(), {'createdAt': None, 'updatedAt': None})

    def test_default_timezone_from_config(self):

        class WarsawDateDto(DateDto):
            marshalling_config = get_marshalling_config(
                {'transferobj.default_timezone': 'Europe/Warsaw'})

        dto = WarsawDateDto.from_dict({'createdAt': '2023-07-01T10:00:00'})
        self.assertEqual(dto.createdAt.utcoffset(), datetime.timedelta(hours=2))
        dto = WarsawDateDto(createdAt=datetime.datetime(2023, 1, 15, 10, 0))
        self.assertEqual(dto.to_dict(), {'createdAt': '2023-01-15T10:00:00+01:00'})


@expand
class Test__TransferObject__json(TestCaseMixin, unittest.TestCase):

    def test_to_json(self):
        user = SimpleUserDto(name='John', age=30)
        self.assertEqual(user.to_json(), '{"name": "John", "age": 30}')
        self.assertEqual(str(user), user.to_json())
        self.assertEqual(user.to_string(), user.to_json())

    def test_to_snake_case_json(self):
        dto = SnakeCaseDto(firstName='John', lastName='Doe')
        self.assertEqual(dto.to_snake_case_json(),
                         '{"first_name": "John", "last_name": "Doe"}')

    def test_non_ascii(self):
        dto = SnakeNamedDto(first_name='Zażółć')
        self.assertEqual(json.loads(dto.to_json()), {'firstName': 'Zażółć',
                                                     'homeAddress': 'unknown'})
        self.assertIn('Zażółć', dto.to_json())

    @foreach(
        param('{"name": "John", "age": 30}'),
        param(b'{"name": "John", "age": 30}'),
        param(bytearray(b'{"name": "John", "age": 30}')),
    )
    def test_from_json(self, text):
        self.assertEqual(SimpleUserDto.from_json(text), SimpleUserDto(name='John', age=30))

    def test_roundtrip(self):
        team = TeamDto(
            teamName='Core',
            members=UserCollection([SimpleUserDto(name='John', age=30)]),
            leader=SimpleUserDto(name='Ann', age=40),
            tags=['x'])
        self.assertEqual(TeamDto.from_json(team.to_json()), team)
        self.assertEqual(TeamDto.from_json(team.to_snake_case_json()), team)

    @foreach(
        param('{"name": "John", ').label('truncated'),
        param('').label('empty'),
        param('[1, 2, 3]').label('array'),
        param('"text"').label('string'),
        param('null').label('null'),
        param(42).label('not text'),
    )
    def test_malformed(self, text):
        with self.assertRaises(MalformedPayloadError) as cm:
            SimpleUserDto.from_json(text)
        self.assertIn('SimpleUserDto', str(cm.exception))

    def test_json_options_from_config(self):

        class SortedUserDto(SimpleUserDto):
            marshalling_config = get_marshalling_config({
                'transferobj.json_sort_keys': 'yes',
                'transferobj.json_indent': '2',
                'transferobj.json_ensure_ascii': 'yes',
            })

        dto = SortedUserDto(name='Łukasz', age=30)
        self.assertEqual(dto.to_json(), '{\n  "age": 30,\n  "name": "\\u0141ukasz"\n}')
