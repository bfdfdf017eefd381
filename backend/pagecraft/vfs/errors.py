"""Exceptions raised by the VFS write path.

Each error carries the HTTP status the API layer answers with, so routers do
not need to know the taxonomy.
"""


class VFSError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PolicyViolationError(VFSError):
    """Operation not permitted by the file's protection level or block constraints."""

    status_code = 403


class PolicyNotCheckedError(VFSError):
    """A structural write reached persistence without a matching policy check."""

    status_code = 500


class IntegrityViolationError(VFSError):
    status_code = 409


class MissingOwnerError(IntegrityViolationError):
    pass


class ArchivedOwnerError(IntegrityViolationError):
    pass


class CrossFileParentError(IntegrityViolationError):
    pass


class PathConflictError(VFSError):
    status_code = 409


class InvalidReorderError(VFSError):
    status_code = 422


class SnapshotError(VFSError):
    """A snapshot guarding a risky operation could not be written."""

    status_code = 503


class InvalidPathError(VFSError):
    status_code = 422
