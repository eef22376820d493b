"""
Domain exceptions raised by validators, repositories and domain objects.

Route handlers translate these into the JSON error envelope.
"""


class BillingError(Exception):
    """Base class for errors raised below the HTTP layer."""

    code = "internal_server_error"


class ValidationError(BillingError, ValueError):
    """A field or row rule was violated."""

    code = "validation_failed"


class AlreadyExistsError(BillingError):
    """A business key (code, key, subdomain...) is already taken."""

    code = "already_exists"


class NotFoundError(BillingError):
    code = "data_not_found"


class GuidGenerationError(BillingError):
    code = "guid_generation_failed"
