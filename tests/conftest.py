""" Shared fixtures for the extended SQS client tests.
"""

import io
import json
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from extended_sqs import ExtendedSqsClient


BUCKET_NAME = 'test-bucket'
QUEUE_URL = 'https://sqs.us-east-1.amazonaws.com/123456789012/test-queue'


def client_error(code: str, operation_name: str) -> ClientError:
    """ Builds a botocore client error like the ones raised by AWS.
    """
    return ClientError({'Error': {'Code': code, 'Message': f'{code} happened'}}, operation_name)


def s3_body(content: str) -> Dict[str, Any]:
    """ Builds a ``get_object`` response carrying the given content.
    """
    return {'Body': io.BytesIO(content.encode('utf-8'))}


def pointer_body(bucket_name: str, key: str) -> str:
    return json.dumps([
        'com.amazon.sqs.javamessaging.MessageS3Pointer',
        {'s3BucketName': bucket_name, 's3Key': key},
    ])


@pytest.fixture
def sqs():
    sqs = MagicMock(name='sqs')
    sqs.send_message.return_value = {'MessageId': 'message-id'}
    sqs.send_message_batch.return_value = {'Successful': [], 'Failed': []}
    sqs.receive_message.return_value = {'Messages': []}
    sqs.delete_message.return_value = {}
    sqs.delete_message_batch.return_value = {'Successful': [], 'Failed': []}
    sqs.change_message_visibility.return_value = {}
    sqs.change_message_visibility_batch.return_value = {'Successful': [], 'Failed': []}
    return sqs


@pytest.fixture
def s3():
    return MagicMock(name='s3')


@pytest.fixture
def client(sqs, s3):
    return ExtendedSqsClient(sqs, s3, bucket_name=BUCKET_NAME)
