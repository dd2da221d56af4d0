"""
Purpose: Caller-input failures of the assignment engine.
What it does:
These are raised before any scoring starts. Scoring problems with a specific
driver are never raised; they are reported as errors/warnings on that
driver's AssignmentScore instead.
"""


class AssignmentRequestRejected(Exception):
    """Base class: the request was rejected before scoring."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAssignmentRequest(AssignmentRequestRejected):
    """Malformed input (unknown strategy, limit out of range, ...)."""
    status_code = 400


class TenantMismatch(AssignmentRequestRejected):
    """A referenced record belongs to a different company."""
    status_code = 403


class VehicleNotFound(AssignmentRequestRejected):
    status_code = 404


class DriverNotFound(AssignmentRequestRejected):
    status_code = 404
