""" Tests for deferred requests and their ordering of SQS and S3 calls.
"""

import threading
import time
from unittest.mock import MagicMock, call

import pytest

from extended_sqs.requests import Order, RequestState, SqsRequest, wrap


RESPONSE = {'MessageId': 'abc'}


def test_nothing_runs_until_outcome_is_requested():
    operation, side_effect = MagicMock(return_value=RESPONSE), MagicMock()
    request = SqsRequest(operation, side_effect, Order.BEFORE)
    assert request.state is RequestState.CREATED
    operation.assert_not_called()
    side_effect.assert_not_called()


def test_before_runs_side_effect_first():
    calls = MagicMock()
    calls.operation.return_value = RESPONSE
    request = SqsRequest(calls.operation, calls.store, Order.BEFORE)
    assert request.result() == RESPONSE
    assert calls.mock_calls == [call.store(), call.operation()]
    assert request.state is RequestState.SETTLED_OK


def test_after_passes_response_to_side_effect():
    calls = MagicMock()
    calls.operation.return_value = RESPONSE
    request = SqsRequest(calls.operation, calls.store, Order.AFTER)
    assert request.result() == RESPONSE
    assert calls.mock_calls == [call.operation(), call.store(RESPONSE)]


def test_before_side_effect_failure_skips_operation():
    error = IOError('s3 down')
    operation, side_effect = MagicMock(), MagicMock(side_effect=error)
    request = SqsRequest(operation, side_effect, Order.BEFORE)
    with pytest.raises(IOError) as raised:
        request.result()
    assert raised.value is error
    operation.assert_not_called()
    assert request.state is RequestState.SETTLED_ERROR


def test_after_side_effect_failure_is_surfaced():
    error = IOError('s3 down')
    operation, side_effect = MagicMock(return_value=RESPONSE), MagicMock(side_effect=error)
    request = SqsRequest(operation, side_effect, Order.AFTER)
    with pytest.raises(IOError):
        request.result()
    operation.assert_called_once_with()


def test_after_operation_failure_skips_side_effect():
    operation, side_effect = MagicMock(side_effect=KeyError('sqs')), MagicMock()
    with pytest.raises(KeyError):
        SqsRequest(operation, side_effect, Order.AFTER).result()
    side_effect.assert_not_called()


def test_outcome_is_shared_between_result_and_send():
    operation, side_effect = MagicMock(return_value=RESPONSE), MagicMock()
    request = SqsRequest(operation, side_effect)
    callback = MagicMock()

    request.send(callback)
    assert request.result() == RESPONSE
    assert request.promise() == RESPONSE
    request.send(callback)

    operation.assert_called_once_with()
    side_effect.assert_called_once_with()
    assert callback.mock_calls == [call(None, RESPONSE), call(None, RESPONSE)]


def test_send_passes_errors_to_callback():
    error = ValueError('nope')
    request = SqsRequest(MagicMock(side_effect=error))
    callback = MagicMock()
    request.send(callback)
    callback.assert_called_once_with(error, None)


def test_error_is_reraised_unchanged_every_time():
    error = ValueError('nope')
    operation = MagicMock(side_effect=error)
    request = SqsRequest(operation)
    for _ in range(2):
        with pytest.raises(ValueError, match='nope') as raised:
            request.result()
        assert raised.value is error
    operation.assert_called_once_with()


def test_wrap_with_callback_sends_immediately():
    operation = MagicMock(return_value=RESPONSE)
    callback = MagicMock()
    request = wrap(operation, callback=callback)
    callback.assert_called_once_with(None, RESPONSE)
    assert request.result() == RESPONSE
    operation.assert_called_once_with()


def test_wrap_without_callback_defers():
    operation = MagicMock(return_value=RESPONSE)
    request = wrap(operation)
    operation.assert_not_called()
    assert request.result() == RESPONSE


def test_consuming_a_running_request_is_an_error():
    request = None

    def side_effect():
        request.result()

    request = SqsRequest(MagicMock(return_value=RESPONSE), side_effect)
    with pytest.raises(RuntimeError):
        request.result()
    assert request.state is RequestState.SETTLED_ERROR


def test_other_threads_wait_for_the_running_request():
    started = threading.Event()
    operation = MagicMock()

    def slow_operation():
        started.set()
        time.sleep(0.2)
        return operation()

    operation.return_value = RESPONSE
    request = SqsRequest(slow_operation)
    outcomes = []
    worker = threading.Thread(target=lambda: outcomes.append(request.result()))
    worker.start()
    started.wait(timeout=5)

    outcomes.append(request.result())
    worker.join(timeout=5)

    assert outcomes == [RESPONSE, RESPONSE]
    operation.assert_called_once_with()


def test_waiting_thread_receives_the_same_error():
    started = threading.Event()
    error = ValueError('nope')

    def failing_operation():
        started.set()
        time.sleep(0.2)
        raise error

    request = SqsRequest(failing_operation)
    worker = threading.Thread(target=lambda: request.send(lambda err, response: None))
    worker.start()
    started.wait(timeout=5)

    callback = MagicMock()
    request.send(callback)
    worker.join(timeout=5)
    callback.assert_called_once_with(error, None)


def test_interrupt_settles_the_request():
    operation = MagicMock(side_effect=KeyboardInterrupt)
    request = SqsRequest(operation)
    with pytest.raises(KeyboardInterrupt):
        request.result()
    assert request.state is RequestState.SETTLED_ERROR
    with pytest.raises(KeyboardInterrupt):
        request.result()
    operation.assert_called_once_with()
