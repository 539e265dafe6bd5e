""" ExtendedSQS is an SQS client capable of storing oversize message payloads on S3.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

from .constants import (
    DEFAULT_MESSAGE_SIZE_THRESHOLD,
    MESSAGE_POINTER_CLASS,
    RESERVED_ATTRIBUTE_NAME,
    S3_BUCKET_NAME_MARKER,
    S3_KEY_MARKER,
)
from .exceptions import ConfigurationError, ExtendedSqsError
from .extended_sqs_client import ExtendedSqsClient
from .offload import OffloadConfig
from .requests import Order, RequestState, SqsRequest
