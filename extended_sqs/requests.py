""" Contains deferred SQS requests that pair a queue call with an S3 side effect.

Most operations of the extended client make two network calls: one to SQS and one to S3. A ``SqsRequest`` binds both,
runs them in a fixed order the first time its outcome is asked for, and hands that same outcome to every later caller,
whether they block on ``result()`` or pass a callback to ``send()``. Neither call is ever made more than once.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


Response = Dict[str, Any]
""" The response of an SQS call, as returned by boto3.
"""


Callback = Callable[[Optional[BaseException], Optional[Response]], Any]
""" A completion callback, called with ``(error, response)``.
"""


class Order(Enum):
    """ Whether the S3 side effect of a request runs before or after its SQS call.
    """

    BEFORE = 'before'
    """ The side effect runs first; the SQS call is only made if it succeeds.
    """

    AFTER = 'after'
    """ The SQS call runs first; the side effect receives its response.
    """


class RequestState(Enum):
    """ The lifecycle of a request.
    """

    CREATED = 'created'
    SIDE_EFFECT_RUNNING = 'side_effect_running'
    PRIMARY_RUNNING = 'primary_running'
    SETTLED_OK = 'settled_ok'
    SETTLED_ERROR = 'settled_error'


class SqsRequest():
    """ Represents an SQS call, optionally combined with an S3 side effect, that runs at most once.
    """


    def __init__(
        self,
        operation: Callable[[], Response],
        side_effect: Optional[Callable[..., Any]] = None,
        order: Order = Order.BEFORE):
        """ Initializes a new deferred request. Nothing is sent until the outcome is asked for.

        Args:
            operation (Callable[[], Response]): Makes the SQS call and returns its response.
            side_effect (Optional[Callable[..., Any]]): The S3 side effect. Called with no arguments for
                ``Order.BEFORE`` and with the SQS response for ``Order.AFTER``.
            order (Order): Whether the side effect runs before or after the SQS call.
        """
        self._operation = operation
        self._side_effect = side_effect
        self._order = order
        self._state = RequestState.CREATED
        self._response = None
        self._error = None
        self._runner = None
        self._condition = threading.Condition()


    @property
    def state(self) -> RequestState:
        """ Gets the current lifecycle state of the request.

        Returns:
            RequestState: The state.
        """
        return self._state


    @property
    def settled(self) -> bool:
        """ Gets whether or not the request has finished, successfully or otherwise.

        Returns:
            bool: True if the request has settled, otherwise False.
        """
        return self._state in (RequestState.SETTLED_OK, RequestState.SETTLED_ERROR)


    def result(self) -> Response:
        """ Runs the request if it has not yet run, and returns its response.

        Returns:
            Response: The response from SQS.
        Raises:
            Exception: The error raised by whichever call failed, unchanged.
        """
        self._settle()
        if self._error is not None:
            raise self._error
        return self._response


    def promise(self) -> Response:
        """ Alias of ``result()``.
        """
        return self.result()


    def send(self, callback: Callback) -> None:
        """ Runs the request if it has not yet run, and passes its outcome to a callback.

        Failures are passed to the callback as its first argument and are not raised.

        Args:
            callback (Callback): Called exactly once with ``(error, response)``; error is None on success, response is
                None on failure.
        """
        self._settle()
        callback(self._error, self._response)


    def _settle(self):
        """ Runs the request on the first call; later callers on other threads wait for it to settle.

        Raises:
            RuntimeError: If the thread running the request asks for its outcome before it has settled.
        """
        with self._condition:
            if self._runner is None:
                self._runner = threading.get_ident()
            elif not self.settled:
                if self._runner == threading.get_ident():
                    raise RuntimeError(f'Request outcome requested while it is still running ({self._state.value}).')
                self._condition.wait_for(lambda: self.settled)
                return
            else:
                return
        self._run()


    def _transition(self, state: RequestState):
        """ Moves the request to a new lifecycle state.

        Args:
            state (RequestState): The new state.
        """
        logger.debug('Request %s: %s -> %s', hex(id(self)), self._state.value, state.value)
        self._state = state


    def _finish(self, state: RequestState, response: Optional[Response] = None, error: Optional[BaseException] = None):
        """ Settles the request and wakes any threads waiting for its outcome.

        Args:
            state (RequestState): The settled state.
            response (Optional[Response]): The response from SQS, on success.
            error (Optional[BaseException]): The error raised by whichever call failed, on failure.
        """
        with self._condition:
            self._response = response
            self._error = error
            self._transition(state)
            self._condition.notify_all()


    def _run(self):
        """ Makes the SQS call and runs the side effect in order, then settles the request.
        """
        try:
            if self._order is Order.BEFORE:
                if self._side_effect is not None:
                    self._transition(RequestState.SIDE_EFFECT_RUNNING)
                    self._side_effect()
                self._transition(RequestState.PRIMARY_RUNNING)
                response = self._operation()
            else:
                self._transition(RequestState.PRIMARY_RUNNING)
                response = self._operation()
                if self._side_effect is not None:
                    self._transition(RequestState.SIDE_EFFECT_RUNNING)
                    try:
                        self._side_effect(response)
                    except Exception:
                        logger.warning('S3 step failed after the SQS call succeeded; the SQS call is not undone.')
                        raise
        except BaseException as err:
            self._finish(RequestState.SETTLED_ERROR, error=err)

            # Interrupts still unwind the caller, but the request stays settled.
            if not isinstance(err, Exception):
                raise
            return
        self._finish(RequestState.SETTLED_OK, response=response)


def wrap(
    operation: Callable[[], Response],
    side_effect: Optional[Callable[..., Any]] = None,
    order: Order = Order.BEFORE,
    callback: Optional[Callback] = None) -> SqsRequest:
    """ Builds a deferred request, starting it straight away if a callback is given.

    Args:
        operation (Callable[[], Response]): Makes the SQS call and returns its response.
        side_effect (Optional[Callable[..., Any]]): The S3 side effect, if any.
        order (Order): Whether the side effect runs before or after the SQS call.
        callback (Optional[Callback]): If given, the request is sent at once and its outcome passed to this.
    Returns:
        SqsRequest: The request, which may still be consumed through ``result()`` or ``send()``.
    """
    request = SqsRequest(operation, side_effect, order)
    if callback is not None:
        request.send(callback)
    return request
