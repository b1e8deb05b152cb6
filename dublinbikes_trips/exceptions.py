class DublinBikesError(Exception):
    """Base error for every failed step of the dublinbikes client."""

    def __init__(self, operation, message):
        self.operation = operation
        super().__init__("{}: {}".format(operation, message))


class TransportError(DublinBikesError):
    """Connection failure, timeout or malformed request."""


class UnexpectedStatusError(DublinBikesError):
    """Server answered with a status other than the one the step requires."""

    def __init__(self, operation, status_code, reason=None, expected=200):
        self.status_code = status_code
        self.reason = reason
        self.expected = expected
        status = "{} {}".format(status_code, reason) if reason else str(status_code)
        super().__init__(operation, "expected status {} but received {}".format(expected, status))


class ProtocolError(DublinBikesError):
    """Response had the right status but not the data the step needs."""


class DecodeError(DublinBikesError):
    """Malformed JSON or a body that does not match the expected schema."""
