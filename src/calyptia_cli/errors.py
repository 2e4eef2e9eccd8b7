"""
Exception classes for the Calyptia CLI.

All errors raised on purpose by this package derive from CalyptiaError so
the command layer can report them uniformly:
- KeyResolutionError: a human key could not be turned into an ID
  (EntityNotFoundError, AmbiguousKeyError)
- TransportError: the cloud API could not be reached, answered with
  an error (CloudAPIError) or returned an unreadable body
  (MalformedResponseError)
- ClusterObjectNotFoundError: a Kubernetes object does not exist
- ClusterAPIError: the Kubernetes API rejected a read
- ProvisionStepError: a provisioning step failed
- BulkOperationError: one or more items of a bulk operation failed
- ConfigError: invalid token or cloud URL

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from calyptia_cli.k8s.provision import ProvisionStep
    from calyptia_cli.types import EntityKind


class CalyptiaError(Exception):
    """Base class for all errors reported by the CLI."""


class ConfigError(CalyptiaError):
    """Raised on invalid configuration (token, cloud URL)."""


class KeyResolutionError(CalyptiaError):
    """
    Raised when a human key cannot be resolved to a canonical ID.

    Attributes:
        kind: Entity kind being resolved.
        key: The key supplied by the operator.
    """

    def __init__(self, kind: EntityKind, key: str, message: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(message)


class EntityNotFoundError(KeyResolutionError):
    """No entity of the kind has the given name, and the key is not an ID."""

    def __init__(self, kind: EntityKind, key: str) -> None:
        super().__init__(kind, key, f"could not find {kind.label} {key!r}")


class AmbiguousKeyError(KeyResolutionError):
    """Several entities of the kind share the given name, and the key is not an ID."""

    def __init__(self, kind: EntityKind, key: str) -> None:
        super().__init__(kind, key, f"ambiguous {kind.label} name {key!r}, use ID instead")


class TransportError(CalyptiaError):
    """Raised when the cloud API cannot be reached."""


class CloudAPIError(TransportError):
    """
    Raised when the cloud API answers with a non-success status.

    Attributes:
        status_code: HTTP status code of the response.
        message: Error message reported by the API (or the response reason).
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"cloud API error ({status_code}): {message}")


class MalformedResponseError(TransportError):
    """
    Raised when a successful cloud API response cannot be decoded.

    Attributes:
        path: Request path of the response.
    """

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"unexpected cloud API response from {path}: {detail}")


class ClusterAPIError(CalyptiaError):
    """
    Raised when a Kubernetes API read fails for a reason other than not-found.

    Attributes:
        operation: What was being read (e.g. "list deployments").
        status: HTTP status reported by the API server, if any.
        reason: Reason reported by the API server.
    """

    def __init__(self, operation: str, status: int | None, reason: str) -> None:
        self.operation = operation
        self.status = status
        self.reason = reason
        super().__init__(f"kubernetes API error ({status}) on {operation}: {reason}")


class ClusterObjectNotFoundError(CalyptiaError):
    """
    Raised by cluster clients when a requested object does not exist.

    Attributes:
        kind: Kubernetes kind (e.g. "Namespace").
        name: Object name.
    """

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} {name!r} not found")


class ProvisionStepError(CalyptiaError):
    """
    Raised when a provisioning step fails.

    Objects created by earlier steps are left in place.

    Attributes:
        step: The step that failed.
        cause: The underlying exception.
        completed: Steps that finished before the failure, in order.
    """

    def __init__(
        self,
        step: ProvisionStep,
        cause: BaseException,
        completed: Sequence[ProvisionStep] = (),
    ) -> None:
        self.step = step
        self.cause = cause
        self.completed = list(completed)
        super().__init__(f"provisioning failed at step {step.value}: {cause}")


class BulkOperationError(CalyptiaError):
    """
    Raised when at least one item of a bulk operation failed.

    Every item is attempted regardless of earlier failures.

    Attributes:
        causes: Exceptions raised by the failing items, in input order.
        total: Number of items attempted.
    """

    def __init__(self, causes: Sequence[Exception], total: int) -> None:
        self.causes = list(causes)
        self.total = total
        first = self.causes[0] if self.causes else None
        super().__init__(f"{len(self.causes)} of {total} operations failed: {first}")

    @property
    def failed(self) -> int:
        return len(self.causes)

    @property
    def succeeded(self) -> int:
        return self.total - len(self.causes)
