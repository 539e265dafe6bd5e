""" Contains the errors raised by the extended SQS client itself.

Errors raised by the underlying SQS and S3 clients are never wrapped and reach callers unchanged.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""


class ExtendedSqsError(Exception):
    """ The base class for errors raised by the extended SQS client.
    """


class ConfigurationError(ExtendedSqsError):
    """ Raised when the client is not configured to perform the requested operation.
    """
