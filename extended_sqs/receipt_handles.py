""" Embeds the S3 location of an offloaded payload in a receipt handle, and recovers it again.

An extended receipt handle reads ``-..s3BucketName..-<bucket>-..s3BucketName..--..s3Key..-<key>-..s3Key..-<handle>``.
Handles without the markers are ordinary SQS receipt handles and pass through every function here untouched.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

import re
from typing import Optional

from .constants import S3_BUCKET_NAME_MARKER, S3_KEY_MARKER


EXTENDED_RECEIPT_HANDLE_PATTERN = re.compile(
    '^{bucket}(.*){bucket}{key}(.*){key}(.*)$'.format(
        bucket=re.escape(S3_BUCKET_NAME_MARKER),
        key=re.escape(S3_KEY_MARKER),
    ),
    re.DOTALL,
)
""" Matches an extended receipt handle, capturing the bucket name, key and original receipt handle.
"""


def _contains_marker(value: str) -> bool:
    """ Gets whether or not a value contains either receipt handle marker.

    Args:
        value (str): The value to check.
    Returns:
        bool: True if a marker occurs in the value, otherwise False.
    """
    return S3_BUCKET_NAME_MARKER in value or S3_KEY_MARKER in value


def embed_s3_markers(bucket_name: str, key: str, receipt_handle: str) -> str:
    """ Builds an extended receipt handle carrying the S3 location of a message payload.

    Args:
        bucket_name (str): The name of the bucket holding the payload.
        key (str): The key of the object holding the payload.
        receipt_handle (str): The receipt handle issued by SQS.
    Returns:
        str: The extended receipt handle.
    Raises:
        ValueError: If the bucket name or key contains one of the markers, and so could not be recovered.
    """
    if _contains_marker(bucket_name) or _contains_marker(key):
        raise ValueError(f'Cannot embed S3 location {bucket_name!r}/{key!r} in a receipt handle.')
    return f'{S3_BUCKET_NAME_MARKER}{bucket_name}{S3_BUCKET_NAME_MARKER}' \
        f'{S3_KEY_MARKER}{key}{S3_KEY_MARKER}{receipt_handle}'


def extract_bucket_name(receipt_handle: str) -> Optional[str]:
    """ Gets the bucket name embedded in a receipt handle.

    Args:
        receipt_handle (str): The (possibly extended) receipt handle.
    Returns:
        Optional[str]: The bucket name, or None for an ordinary receipt handle.
    """
    match = EXTENDED_RECEIPT_HANDLE_PATTERN.match(receipt_handle)
    return match.group(1) if match else None


def extract_s3_key(receipt_handle: str) -> Optional[str]:
    """ Gets the object key embedded in a receipt handle.

    Args:
        receipt_handle (str): The (possibly extended) receipt handle.
    Returns:
        Optional[str]: The object key, or None for an ordinary receipt handle.
    """
    match = EXTENDED_RECEIPT_HANDLE_PATTERN.match(receipt_handle)
    return match.group(2) if match else None


def get_original_receipt_handle(receipt_handle: str) -> str:
    """ Gets the receipt handle originally issued by SQS.

    Args:
        receipt_handle (str): The (possibly extended) receipt handle.
    Returns:
        str: The receipt handle with any embedded S3 location removed.
    """
    match = EXTENDED_RECEIPT_HANDLE_PATTERN.match(receipt_handle)
    return match.group(3) if match else receipt_handle
