""" Measures SQS messages the way the SQS service counts them against its size limit.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_MESSAGE_SIZE_THRESHOLD


def utf8len(value: Union[str, bytes]) -> int:
    """ Gets the length of a string in bytes, when encoded as UTF-8.

    Args:
        value (Union[str, bytes]): The string to check the length of. Bytes are counted as-is.
    Returns:
        int: The length of the value in bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    return len(value.encode('utf-8'))


def get_message_attributes_size(message_attributes: Optional[Dict[str, Dict[str, Any]]]) -> int:
    """ Gets the combined size of a set of message attributes in bytes.

    Each attribute counts its name, its data type and whichever of its string or binary value is set.

    Args:
        message_attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes to measure.
    Returns:
        int: The size of the attributes in bytes (zero if there are none).
    """
    if not message_attributes:
        return 0

    size = 0
    for name, attribute in message_attributes.items():
        size += utf8len(name)
        size += utf8len(attribute.get('DataType') or '')
        if attribute.get('StringValue') is not None:
            size += utf8len(attribute['StringValue'])
        if attribute.get('BinaryValue') is not None:
            size += utf8len(attribute['BinaryValue'])
    return size


def get_message_size(message_body: str, message_attributes: Optional[Dict[str, Dict[str, Any]]] = None) -> int:
    """ Gets the size of a message (body plus attributes) in bytes.

    Args:
        message_body (str): The body of the message.
        message_attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes, if any.
    Returns:
        int: The size of the message in bytes.
    """
    return utf8len(message_body) + get_message_attributes_size(message_attributes)


def is_large(
    message_body: str,
    message_attributes: Optional[Dict[str, Dict[str, Any]]] = None,
    message_size_threshold: int = DEFAULT_MESSAGE_SIZE_THRESHOLD) -> bool:
    """ Gets whether or not a message exceeds the given size threshold.

    Args:
        message_body (str): The body of the message.
        message_attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes, if any.
        message_size_threshold (int): The size limit in bytes. A message of exactly this size is not large.
    Returns:
        bool: True if the message is larger than the threshold, otherwise False.
    """
    return get_message_size(message_body, message_attributes) > message_size_threshold
