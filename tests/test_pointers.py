""" Tests for S3 pointer records.
"""

import json

import pytest

from extended_sqs.constants import MESSAGE_POINTER_CLASS, RESERVED_ATTRIBUTE_NAME
from extended_sqs.pointers import (
    S3Pointer,
    build_pointer_body,
    extract_pointer,
    get_pointer,
    is_offloaded,
    with_size_attribute,
)


def test_pointer_body_round_trips():
    body = build_pointer_body('my-bucket', 'my-key')
    assert json.loads(body) == [MESSAGE_POINTER_CLASS, {'s3BucketName': 'my-bucket', 's3Key': 'my-key'}]
    assert extract_pointer(body) == S3Pointer('my-bucket', 'my-key')


@pytest.mark.parametrize('body', [
    'just some text',
    '',
    '{"s3BucketName": "b", "s3Key": "k"}',
    '["com.example.SomethingElse", {"s3BucketName": "b", "s3Key": "k"}]',
    '["com.amazon.sqs.javamessaging.MessageS3Pointer"]',
    '["com.amazon.sqs.javamessaging.MessageS3Pointer", {"s3BucketName": "b"}]',
    '["com.amazon.sqs.javamessaging.MessageS3Pointer", "not a dict"]',
])
def test_ordinary_bodies_are_not_pointers(body):
    assert extract_pointer(body) is None


def test_is_offloaded_checks_reserved_attribute():
    assert is_offloaded({RESERVED_ATTRIBUTE_NAME: {'DataType': 'Number', 'StringValue': '1'}})
    assert not is_offloaded({'Other': {'DataType': 'String', 'StringValue': '1'}})
    assert not is_offloaded(None)


def test_get_pointer_needs_both_attribute_and_pointer_body():
    body = build_pointer_body('b', 'k')
    attributes = {RESERVED_ATTRIBUTE_NAME: {'DataType': 'Number', 'StringValue': '300000'}}
    assert get_pointer({'Body': body, 'MessageAttributes': attributes}) == S3Pointer('b', 'k')
    assert get_pointer({'Body': body}) is None
    assert get_pointer({'Body': 'not json', 'MessageAttributes': attributes}) is None


def test_with_size_attribute_copies_and_overwrites():
    attributes = {
        'Colour': {'DataType': 'String', 'StringValue': 'red'},
        RESERVED_ATTRIBUTE_NAME: {'DataType': 'Number', 'StringValue': '1'},
    }
    updated = with_size_attribute(attributes, 262145)
    assert updated[RESERVED_ATTRIBUTE_NAME] == {'DataType': 'Number', 'StringValue': '262145'}
    assert updated['Colour'] == attributes['Colour']
    assert attributes[RESERVED_ATTRIBUTE_NAME]['StringValue'] == '1'
    assert with_size_attribute(None, 5) == {RESERVED_ATTRIBUTE_NAME: {'DataType': 'Number', 'StringValue': '5'}}
