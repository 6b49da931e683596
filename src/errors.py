"""
Error types for the rollerderby compute control tool.

Every failure in the core is raised as one of these; only the CLI decides
whether a failure ends the process.
"""

from typing import List, Optional


class RollerDerbyError(Exception):
    """Base error for rollerderby."""


class ValidationError(RollerDerbyError):
    """One or more required inputs are blank or invalid."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class RemoteError(RollerDerbyError):
    """A call to the compute API failed at the transport or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteReadError(RemoteError):
    """Project or instance group state could not be fetched."""


class RemoteWriteError(RemoteError):
    """A mutating call was not accepted by the compute API."""


class OptimisticConcurrencyError(RemoteWriteError):
    """The submitted fingerprint is stale: the resource changed since it was read."""


class SnapshotWriteError(RollerDerbyError):
    """The metadata snapshot could not be written and flushed."""


class OperationError(RollerDerbyError):
    """The remote operation reported one or more structured errors."""

    def __init__(self, operation: str, entries: list):
        self.operation = operation
        self.entries = list(entries)
        details = "; ".join(
            f"code={e.code} message={e.message} location={e.location}"
            for e in self.entries
        )
        super().__init__(f"{operation} failed: {details}")
