""" Contains an SQS client capable of storing oversize message payloads on S3.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

import hashlib
import logging
import os
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import boto3

from .constants import DEFAULT_MESSAGE_SIZE_THRESHOLD, RESERVED_ATTRIBUTE_NAME
from .offload import OffloadConfig, OffloadDecision, decide
from .pointers import get_pointer
from .receipt_handles import (
    embed_s3_markers,
    extract_bucket_name,
    extract_s3_key,
    get_original_receipt_handle,
)
from .requests import Callback, Order, Response, SqsRequest, wrap


logger = logging.getLogger(__name__)


def _run_all(calls: Iterable[Callable[[], Any]]):
    """ Makes every call, then raises the first error encountered (if any).

    Args:
        calls (Iterable[Callable[[], Any]]): The calls to make.
    """
    first_error = None
    for call in calls:
        try:
            call()
        except Exception as err:
            if first_error is None:
                first_error = err
    if first_error is not None:
        raise first_error


class ExtendedSqsClient():
    """ Represents an SQS client capable of storing oversize message payloads on S3.

    Each operation mirrors the boto3 SQS operation of the same name, taking the same keyword arguments. Rather than
    a response, it returns an ``SqsRequest``: call ``result()`` to block for the response, or ``send(callback)`` (or
    pass ``callback=`` to the operation itself) to have ``callback(error, response)`` called instead.
    """


    def __init__(
        self,
        sqs: Any,
        s3: Any,
        bucket_name: Optional[str] = None,
        message_size_threshold: Optional[int] = DEFAULT_MESSAGE_SIZE_THRESHOLD,
        always_through_s3: bool = False,
        queue_url: Optional[str] = None):
        """ Initializes a new SQS client capable of storing oversize message payloads on S3.

        Args:
            sqs (botocore.client.SQS): The SQS client to use.
            s3 (botocore.client.S3): The S3 client to use.
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads. Only
                required for sending messages.
            message_size_threshold (Optional[int]): The size limit (in bytes) above which S3 should be used to store
                message payloads.
            always_through_s3 (bool): Whether to store every message payload on S3, regardless of size.
            queue_url (Optional[str]): The URL of the queue to use for calls that do not give a ``QueueUrl``.
        """
        self._sqs = sqs
        self._s3 = s3
        self._config = OffloadConfig(bucket_name, message_size_threshold, always_through_s3)
        self._queue_url = queue_url


    @property
    def config(self) -> OffloadConfig:
        """ Gets the offload settings of this client.

        Returns:
            OffloadConfig: The offload settings.
        """
        return self._config


    def _with_queue_url(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """ Copies a set of request parameters, filling in the default queue URL if they give none.

        Args:
            params (Dict[str, Any]): The request parameters.
        Returns:
            Dict[str, Any]: The copied parameters.
        """
        params = dict(params)
        if self._queue_url is not None:
            params.setdefault('QueueUrl', self._queue_url)
        return params


    def _store_s3_content(self, key: str, content: str):
        """ Stores a message payload in the configured bucket.

        Args:
            key (str): The key to store the payload under.
            content (str): The payload.
        """
        bucket_name = self._config.require_bucket_name()
        logger.debug('Storing message payload at s3://%s/%s', bucket_name, key)
        self._s3.put_object(
            Body=content,
            Bucket=bucket_name,
            Key=key,
            ContentType='text/plain',
        )


    def _get_s3_content(self, bucket_name: str, key: str) -> bytes:
        """ Fetches a message payload from S3.

        Args:
            bucket_name (str): The name of the bucket holding the payload.
            key (str): The key of the object holding the payload.
        Returns:
            bytes: The raw payload.
        """
        logger.debug('Fetching message payload from s3://%s/%s', bucket_name, key)
        s3_response = self._s3.get_object(Bucket=bucket_name, Key=key)
        return s3_response['Body'].read()


    def _delete_s3_content(self, bucket_name: str, key: str):
        """ Deletes a message payload from S3.

        Args:
            bucket_name (str): The name of the bucket holding the payload.
            key (str): The key of the object holding the payload.
        """
        logger.debug('Deleting message payload at s3://%s/%s', bucket_name, key)
        self._s3.delete_object(Bucket=bucket_name, Key=key)


    def _store_all(self, decisions: List[OffloadDecision]):
        """ Stores the payload of every offloaded message in a batch, failing if any store fails.

        Args:
            decisions (List[OffloadDecision]): The offload decisions for the batch entries.
        """
        _run_all(
            partial(self._store_s3_content, decision.s3_key, decision.s3_content)
            for decision in decisions if decision.offload
        )


    def send_message(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Sends an SQS message, substituting an S3 pointer for oversize payloads if necessary.

        The payload is stored on S3 before the pointer is sent, so a pointer is never visible on the queue before
        the payload it points at exists.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``send_message`` parameters, as for boto3.
        Returns:
            SqsRequest: The request.
        Raises:
            ConfigurationError: If no bucket name is configured.
        """
        self._config.require_bucket_name()
        decision = decide(self._with_queue_url(params), self._config)
        operation = partial(self._sqs.send_message, **decision.params)

        # Small messages go straight to SQS.
        if not decision.offload:
            logger.debug('Sending message body inline via SQS')
            return wrap(operation, callback=callback)

        return wrap(
            operation,
            partial(self._store_s3_content, decision.s3_key, decision.s3_content),
            Order.BEFORE,
            callback,
        )


    def send_message_batch(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Sends a batch of SQS messages, substituting S3 pointers for oversize payloads where necessary.

        Every oversize payload is stored on S3 before the batch is sent as one SQS call.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``send_message_batch`` parameters, as for boto3.
        Returns:
            SqsRequest: The request.
        Raises:
            ConfigurationError: If no bucket name is configured.
        """
        self._config.require_bucket_name()
        send_params = self._with_queue_url(params)
        decisions = [decide(entry, self._config) for entry in params['Entries']]
        send_params['Entries'] = [decision.params for decision in decisions]
        operation = partial(self._sqs.send_message_batch, **send_params)

        if not any(decision.offload for decision in decisions):
            return wrap(operation, callback=callback)

        return wrap(operation, partial(self._store_all, decisions), Order.BEFORE, callback)


    def _resolve_pointers(self, sqs_response: Response):
        """ Replaces the pointer body of every offloaded message in a response with its payload from S3.

        Args:
            sqs_response (Response): The response from ``receive_message``. Modified in place.
        """
        def resolve(message: Dict[str, Any]):

            # If the message is an S3 pointer, attempt to resolve it.
            pointer = get_pointer(message)
            if pointer is None:
                return

            # Pull in oversize payload from S3 and assign in place of SQS message body.
            body_bytes = self._get_s3_content(pointer.bucket_name, pointer.key)
            message['Body'] = body_bytes.decode('utf-8', errors='replace')
            message['MD5OfBody'] = hashlib.md5(body_bytes).hexdigest() # Update MD5 hash.

            # Carry the S3 location in the receipt handle, for when we delete.
            message['ReceiptHandle'] = embed_s3_markers(pointer.bucket_name, pointer.key, message['ReceiptHandle'])

        _run_all(partial(resolve, message) for message in sqs_response.get('Messages', []))


    def receive_message(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Receives one or more messages from SQS, resolving any pointers to oversize payloads on S3.

        Offloaded payloads are decoded as UTF-8, with undecodable bytes replaced by U+FFFD.
        Offloaded messages come back with their payload as the body and an extended receipt handle, which the
        delete and visibility operations of this client accept. If fetching a payload fails, the request fails even
        though the messages have already been received; they become visible again once their visibility timeout
        lapses.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``receive_message`` parameters, as for boto3.
        Returns:
            SqsRequest: The request.
        """
        receive_params = self._with_queue_url(params)

        # We always need the reserved attribute to tell pointers from ordinary payloads.
        attribute_names = list(receive_params.get('MessageAttributeNames') or [])
        if RESERVED_ATTRIBUTE_NAME not in attribute_names:
            attribute_names.append(RESERVED_ATTRIBUTE_NAME)
        receive_params['MessageAttributeNames'] = attribute_names

        return wrap(
            partial(self._sqs.receive_message, **receive_params),
            self._resolve_pointers,
            Order.AFTER,
            callback,
        )


    @staticmethod
    def _prepare_delete(params: Dict[str, Any]) -> Tuple[Optional[str], Optional[str], Dict[str, Any]]:
        """ Splits the S3 location of a payload (if any) out of the receipt handle of a delete request or entry.

        Args:
            params (Dict[str, Any]): The ``delete_message`` parameters, or one ``delete_message_batch`` entry.
        Returns:
            Tuple[Optional[str], Optional[str], Dict[str, Any]]: The bucket name, key and parameters carrying the
                original receipt handle.
        """
        receipt_handle = params['ReceiptHandle']
        delete_params = dict(params)
        delete_params['ReceiptHandle'] = get_original_receipt_handle(receipt_handle)
        return extract_bucket_name(receipt_handle), extract_s3_key(receipt_handle), delete_params


    def delete_message(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Deletes an SQS message from the queue, cleaning up its associated S3 object if necessary.

        The S3 object is deleted first; if that fails, the message is left on the queue.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``delete_message`` parameters, as for boto3. ``ReceiptHandle`` may be extended.
        Returns:
            SqsRequest: The request.
        """
        bucket_name, s3_key, delete_params = self._prepare_delete(self._with_queue_url(params))
        operation = partial(self._sqs.delete_message, **delete_params)

        if not s3_key:
            return wrap(operation, callback=callback)

        return wrap(operation, partial(self._delete_s3_content, bucket_name, s3_key), Order.BEFORE, callback)


    def delete_message_batch(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Deletes a batch of SQS messages from the queue, cleaning up their associated S3 objects if necessary.

        Deletion of every S3 object is attempted before the batch is deleted as one SQS call. If any S3 deletion
        fails, no message is deleted from the queue.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``delete_message_batch`` parameters, as for boto3. Receipt handles may be extended.
        Returns:
            SqsRequest: The request.
        """
        delete_params = self._with_queue_url(params)
        prepared = [self._prepare_delete(entry) for entry in params['Entries']]
        delete_params['Entries'] = [entry_params for _, _, entry_params in prepared]
        operation = partial(self._sqs.delete_message_batch, **delete_params)

        s3_deletions = [
            partial(self._delete_s3_content, bucket_name, s3_key)
            for bucket_name, s3_key, _ in prepared if s3_key
        ]
        if not s3_deletions:
            return wrap(operation, callback=callback)

        return wrap(operation, partial(_run_all, s3_deletions), Order.BEFORE, callback)


    def change_message_visibility(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Changes the visibility timeout of an SQS message.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``change_message_visibility`` parameters, as for boto3. ``ReceiptHandle`` may be extended.
        Returns:
            SqsRequest: The request.
        """
        visibility_params = self._with_queue_url(params)
        visibility_params['ReceiptHandle'] = get_original_receipt_handle(params['ReceiptHandle'])
        return wrap(partial(self._sqs.change_message_visibility, **visibility_params), callback=callback)


    def change_message_visibility_batch(self, callback: Optional[Callback] = None, **params) -> SqsRequest:
        """ Changes the visibility timeout of a batch of SQS messages.

        Args:
            callback (Optional[Callback]): If given, the request is sent at once and ``callback(error, response)``
                is called with its outcome.
            **params: The ``change_message_visibility_batch`` parameters, as for boto3. Receipt handles may be
                extended.
        Returns:
            SqsRequest: The request.
        """
        visibility_params = self._with_queue_url(params)
        visibility_params['Entries'] = [
            dict(entry, ReceiptHandle=get_original_receipt_handle(entry['ReceiptHandle']))
            for entry in params['Entries']
        ]
        return wrap(partial(self._sqs.change_message_visibility_batch, **visibility_params), callback=callback)


    @staticmethod
    def from_aws_creds(
        region_name: str,
        aws_access_key_id: str,
        aws_secret_access_key: str,
        bucket_name: Optional[str] = None,
        message_size_threshold: Optional[int] = DEFAULT_MESSAGE_SIZE_THRESHOLD,
        always_through_s3: bool = False,
        queue_url: Optional[str] = None) -> 'ExtendedSqsClient':
        """ Initializes a new SQS client capable of handling large messages, using the given AWS credentials.

        Args:
            region_name (str): The AWS region name.
            aws_access_key_id (str): The AWS access key ID to use.
            aws_secret_access_key (str): The AWS secret access key to use.
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads.
            message_size_threshold (Optional[int]): The size limit (in bytes) above which S3 should be used to store
                message payloads.
            always_through_s3 (bool): Whether to store every message payload on S3, regardless of size.
            queue_url (Optional[str]): The URL of the queue to use for calls that do not give a ``QueueUrl``.
        Returns:
            ExtendedSqsClient: The newly-initialized client.
        """
        credentials = {
            'region_name': region_name,
            'aws_access_key_id': aws_access_key_id,
            'aws_secret_access_key': aws_secret_access_key,
        }
        return ExtendedSqsClient(
            boto3.client('sqs', **credentials),
            boto3.client('s3', **credentials),
            bucket_name,
            message_size_threshold,
            always_through_s3,
            queue_url,
        )


    @staticmethod
    def from_default_aws_creds(
        bucket_name: Optional[str] = None,
        message_size_threshold: Optional[int] = DEFAULT_MESSAGE_SIZE_THRESHOLD,
        always_through_s3: bool = False,
        queue_url: Optional[str] = None) -> 'ExtendedSqsClient':
        """ Initializes a new SQS client capable of handling large messages, from the default AWS credentials present
        in the environment.

        Args:
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads.
            message_size_threshold (Optional[int]): The size limit (in bytes) above which S3 should be used to store
                message payloads.
            always_through_s3 (bool): Whether to store every message payload on S3, regardless of size.
            queue_url (Optional[str]): The URL of the queue to use for calls that do not give a ``QueueUrl``.
        Returns:
            ExtendedSqsClient: The newly-initialized client.
        """
        return ExtendedSqsClient(
            boto3.client('sqs'),
            boto3.client('s3'),
            bucket_name,
            message_size_threshold,
            always_through_s3,
            queue_url,
        )


    @staticmethod
    def from_env(sqs: Any = None, s3: Any = None, prefix: str = 'EXTENDED_SQS_') -> 'ExtendedSqsClient':
        """ Initializes a new SQS client capable of handling large messages, with offload settings read from the
        environment (see ``OffloadConfig.from_env``).

        Args:
            sqs (Optional[botocore.client.SQS]): The SQS client to use (defaults to a new one).
            s3 (Optional[botocore.client.S3]): The S3 client to use (defaults to a new one).
            prefix (str): The prefix shared by the environment variable names.
        Returns:
            ExtendedSqsClient: The newly-initialized client.
        """
        config = OffloadConfig.from_env(prefix)
        return ExtendedSqsClient(
            sqs if sqs is not None else boto3.client('sqs'),
            s3 if s3 is not None else boto3.client('s3'),
            config.bucket_name,
            config.message_size_threshold,
            config.always_through_s3,
            os.environ.get(f'{prefix}QUEUE_URL') or None,
        )
