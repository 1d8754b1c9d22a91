"""
Jazzlink – error taxonomy shared by services and routers.

Services raise these; ``jazzlink.main`` renders them as JSON responses
with the status code carried by each class.
"""

from typing import Optional


class JazzlinkError(Exception):
    """Base class for every failure reported to a caller."""

    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(JazzlinkError):
    """Input rejected before any write."""

    status_code = 422
    code = "validation_error"


class NotFoundError(JazzlinkError):
    status_code = 404
    code = "not_found"


class PermissionDenied(JazzlinkError):
    status_code = 403
    code = "permission_denied"


class TransientStoreError(JazzlinkError):
    """The store was unavailable or locked; the caller may resubmit."""

    status_code = 503
    code = "store_unavailable"


class ConsistencyDrift(JazzlinkError):
    """
    A musician/team pair disagrees after a partially applied update.

    The first write (``committed``) went through; the roster-side write
    for ``team_id`` did not.  Reconciliation repairs it.
    """

    status_code = 409
    code = "consistency_drift"

    def __init__(
        self,
        message: str,
        musician_id: Optional[int] = None,
        team_id: Optional[int] = None,
        committed: str = "musician",
    ):
        super().__init__(message)
        self.musician_id = musician_id
        self.team_id = team_id
        self.committed = committed


class EnrichmentError(JazzlinkError):
    """The place lookup service failed or is not configured."""

    status_code = 502
    code = "enrichment_failed"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
