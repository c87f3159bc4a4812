"""
Vocora error types raised by service clients and recovered at the boundaries
"""


class VocoraError(Exception):
    """Base class for recoverable service errors"""

    kind = "error"


class NetworkFailure(VocoraError):
    """A remote service could not be reached or answered with a failure status"""

    kind = "network_failure"


class EmptyInput(VocoraError):
    """A required story or word selection was empty"""

    kind = "empty_input"


class NotFound(VocoraError):
    """The dictionary has no entry for the requested word"""

    kind = "not_found"


class MalformedResponse(VocoraError):
    """A remote service answered with an unexpected payload shape"""

    kind = "malformed_response"
