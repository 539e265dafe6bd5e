""" Decides whether outgoing messages are offloaded to S3, and substitutes pointers for their bodies.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple, Optional
from uuid import uuid4

from .constants import DEFAULT_MESSAGE_SIZE_THRESHOLD
from .exceptions import ConfigurationError
from .message_size import get_message_size
from .pointers import build_pointer_body, with_size_attribute


logger = logging.getLogger(__name__)


MISSING_BUCKET_MESSAGE = 'bucket_name option is required for sending messages'


_TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class OffloadConfig():
    """ Represents the offload settings of a client, fixed for its lifetime.
    """

    bucket_name: Optional[str] = None
    """ The name of the S3 bucket to use to store oversize message payloads (required only for sending).
    """

    message_size_threshold: Optional[int] = DEFAULT_MESSAGE_SIZE_THRESHOLD
    """ The size limit (in bytes) above which S3 should be used to store message payloads.
    """

    always_through_s3: bool = False
    """ Whether to store every message payload on S3, regardless of size.
    """

    def __post_init__(self):
        # Unset (or zero) thresholds fall back to the default.
        if not self.message_size_threshold:
            object.__setattr__(self, 'message_size_threshold', DEFAULT_MESSAGE_SIZE_THRESHOLD)
        elif self.message_size_threshold < 0:
            raise ConfigurationError(f'message_size_threshold must not be negative: {self.message_size_threshold}')


    def require_bucket_name(self) -> str:
        """ Gets the configured bucket name, failing if there is none.

        Returns:
            str: The bucket name.
        Raises:
            ConfigurationError: If no bucket name is configured.
        """
        if not self.bucket_name:
            raise ConfigurationError(MISSING_BUCKET_MESSAGE)
        return self.bucket_name


    @staticmethod
    def from_env(prefix: str = 'EXTENDED_SQS_') -> 'OffloadConfig':
        """ Reads offload settings from the environment.

        Reads ``<prefix>BUCKET_NAME``, ``<prefix>MESSAGE_SIZE_THRESHOLD`` and ``<prefix>ALWAYS_THROUGH_S3``. Unset
        variables take their defaults.

        Args:
            prefix (str): The prefix shared by the environment variable names.
        Returns:
            OffloadConfig: The settings read.
        Raises:
            ConfigurationError: If the threshold is not a non-negative integer.
        """
        threshold = os.environ.get(f'{prefix}MESSAGE_SIZE_THRESHOLD')
        try:
            message_size_threshold = int(threshold) if threshold else None
        except ValueError as err:
            raise ConfigurationError(f'{prefix}MESSAGE_SIZE_THRESHOLD must be an integer: {threshold!r}') from err
        return OffloadConfig(
            bucket_name=os.environ.get(f'{prefix}BUCKET_NAME') or None,
            message_size_threshold=message_size_threshold,
            always_through_s3=os.environ.get(f'{prefix}ALWAYS_THROUGH_S3', '').strip().lower() in _TRUE_VALUES,
        )


class OffloadDecision(NamedTuple):
    """ Represents the outcome of deciding whether to offload one outgoing message.
    """

    params: Dict[str, Any]
    """ The message parameters to send to SQS (a pointer body in place of offloaded payloads).
    """

    s3_key: Optional[str] = None
    """ The key to store the payload under, or None if the message is sent inline.
    """

    s3_content: Optional[str] = None
    """ The payload to store on S3, or None if the message is sent inline.
    """

    @property
    def offload(self) -> bool:
        """ Whether or not the payload goes to S3.
        """
        return self.s3_key is not None


def decide(
    params: Dict[str, Any],
    config: OffloadConfig,
    key_factory: Callable[[], str] = lambda: str(uuid4())) -> OffloadDecision:
    """ Decides whether to offload a message to S3 and prepares the parameters to send to SQS.

    Args:
        params (Dict[str, Any]): The ``send_message`` parameters (or batch entry) for the message. Not modified.
        config (OffloadConfig): The offload settings.
        key_factory (Callable[[], str]): Generates unique keys for offloaded payloads.
    Returns:
        OffloadDecision: The decision, carrying the parameters to send.
    Raises:
        ConfigurationError: If the message must be offloaded and no bucket name is configured.
    """
    message_size = get_message_size(params['MessageBody'], params.get('MessageAttributes'))
    large = message_size > config.message_size_threshold
    logger.debug(
        'Offload decision: size=%d threshold=%d always_through_s3=%s',
        message_size, config.message_size_threshold, config.always_through_s3)

    # Small messages pass through untouched, including any reserved attribute the caller set.
    if not (config.always_through_s3 or large):
        return OffloadDecision(dict(params))

    # Substitute a pointer for the payload and record its original size.
    bucket_name = config.require_bucket_name()
    s3_key = key_factory()
    send_params = dict(params)
    send_params['MessageAttributes'] = with_size_attribute(params.get('MessageAttributes'), message_size)
    send_params['MessageBody'] = build_pointer_body(bucket_name, s3_key)
    logger.debug('Offloading %d byte payload to s3://%s/%s', message_size, bucket_name, s3_key)
    return OffloadDecision(send_params, s3_key, params['MessageBody'])
