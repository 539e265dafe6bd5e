""" Wire-format constants shared with every other implementation of the large-payload protocol.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    17/10/2026
"""


MESSAGE_POINTER_CLASS = 'com.amazon.sqs.javamessaging.MessageS3Pointer'
""" The Java fully-qualified type name heading every S3 pointer record.
"""


RESERVED_ATTRIBUTE_NAME = 'SQSLargePayloadSize'
""" The message attribute carrying the original payload size of offloaded messages.
"""


S3_BUCKET_NAME_MARKER = '-..s3BucketName..-'
""" Delimits the bucket name embedded in an extended receipt handle.
"""


S3_KEY_MARKER = '-..s3Key..-'
""" Delimits the object key embedded in an extended receipt handle.
"""


DEFAULT_MESSAGE_SIZE_THRESHOLD = 256000
""" The size limit (in bytes) above which payloads are offloaded to S3 if none is configured.
"""
