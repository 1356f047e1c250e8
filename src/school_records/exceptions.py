"""
Error taxonomy for the school records core.

Identifier generation errors are hard failures and always propagate to the
caller. Aggregation problems are soft and never surface as exceptions from
the engine itself.
"""


class SchoolRecordsError(Exception):
    """Base class for all errors raised by this package"""


class NotFound(SchoolRecordsError):
    """Tenant, branch, grading system or config does not exist"""


class SequenceUnavailable(SchoolRecordsError):
    """
    The counter transaction could not complete (storage down, lock timeout).

    Nothing was issued. Callers may retry with backoff; the core never
    retries on its own because an ambiguous failure could double-increment.
    """

    retryable = True


class MalformedIdentifier(SchoolRecordsError, ValueError):
    """Identifier does not match the expected pattern for its format"""

    retryable = False


class InvalidConfiguration(SchoolRecordsError, ValueError):
    """Grading or identifier configuration is inconsistent"""
