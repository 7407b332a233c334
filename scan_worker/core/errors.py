# core/errors.py

"""
Worker exception hierarchy
"""

from typing import Optional


class ScanWorkerError(Exception):
    """Base class for every error raised by the worker"""


class LeaseError(ScanWorkerError):
    """The job store could not be queried or updated while leasing; retried next tick"""


class JobStoreError(ScanWorkerError):
    """The job store rejected a write outside of leasing"""


class AuditError(ScanWorkerError):
    """Job-scoped failure; the job ends in the failed state"""


class InvalidUrlError(AuditError):
    pass


class CheckError(AuditError):
    def __init__(self, message: str, check: Optional[str] = None):
        super().__init__(message)
        self.check = check


class RenderError(AuditError):
    pass


class StorageError(AuditError):
    pass


class UrlResolutionError(AuditError):
    pass
