""" Encodes and decodes the S3 pointer records that stand in for offloaded message bodies.

A pointer record is the JSON 2-list ``[MESSAGE_POINTER_CLASS, {"s3BucketName": ..., "s3Key": ...}]``. It is only ever
sent together with the reserved size attribute, and a received body is only treated as a pointer when both are there.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

import json
from typing import Any, Dict, NamedTuple, Optional

from .constants import MESSAGE_POINTER_CLASS, RESERVED_ATTRIBUTE_NAME


class S3Pointer(NamedTuple):
    """ Represents the location of an offloaded message payload on S3.
    """

    bucket_name: str
    """ The name of the bucket holding the payload.
    """

    key: str
    """ The key of the object holding the payload.
    """


def is_offloaded(message_attributes: Optional[Dict[str, Any]]) -> bool:
    """ Gets whether or not a set of message attributes marks its message as offloaded to S3.

    Args:
        message_attributes (Optional[Dict[str, Any]]): The message attributes to check.
    Returns:
        bool: True if the reserved size attribute is present, otherwise False.
    """
    return bool(message_attributes) and RESERVED_ATTRIBUTE_NAME in message_attributes


def extract_pointer(body: str) -> Optional[S3Pointer]:
    """ Parses a message body as an S3 pointer record.

    Args:
        body (str): The message body to parse.
    Returns:
        Optional[S3Pointer]: The pointer, or None if the body is an ordinary payload.
    """
    try:
        parsed_body = json.loads(body)
    except (TypeError, ValueError):
        return None

    # We should have a 2-list consisting of a Java fully-qualified type name and S3 pointer.
    if type(parsed_body) is not list or len(parsed_body) != 2 or parsed_body[0] != MESSAGE_POINTER_CLASS:
        return None
    location = parsed_body[1]
    if type(location) is not dict:
        return None
    bucket_name, key = location.get('s3BucketName'), location.get('s3Key')
    if not isinstance(bucket_name, str) or not isinstance(key, str):
        return None
    return S3Pointer(bucket_name, key)


def get_pointer(message: Dict[str, Any]) -> Optional[S3Pointer]:
    """ Gets the S3 pointer carried by a received SQS message, if it carries one.

    Args:
        message (Dict[str, Any]): The message, as returned by ``receive_message``.
    Returns:
        Optional[S3Pointer]: The pointer, or None if the message body is inline.
    """
    if not is_offloaded(message.get('MessageAttributes')):
        return None
    return extract_pointer(message.get('Body', ''))


def build_pointer_body(bucket_name: str, key: str) -> str:
    """ Serializes an S3 pointer record for use as a message body.

    Args:
        bucket_name (str): The name of the bucket holding the payload.
        key (str): The key of the object holding the payload.
    Returns:
        str: The pointer record as JSON.
    """
    return json.dumps([
        MESSAGE_POINTER_CLASS,
        {
            's3BucketName': bucket_name,
            's3Key': key,
        },
    ])


def with_size_attribute(message_attributes: Optional[Dict[str, Any]], size: int) -> Dict[str, Any]:
    """ Copies a set of message attributes, setting the reserved size attribute.

    Any value the caller already set under the reserved name is overwritten.

    Args:
        message_attributes (Optional[Dict[str, Any]]): The message attributes to copy.
        size (int): The original size of the message in bytes.
    Returns:
        Dict[str, Any]: The new message attributes.
    """
    attributes = dict(message_attributes or {})
    attributes[RESERVED_ATTRIBUTE_NAME] = {
        'DataType': 'Number',
        'StringValue': str(size),
    }
    return attributes
