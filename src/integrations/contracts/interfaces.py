from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RequestVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class RequestStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    FAILED_CONNECTION_ERROR = "FAILED_CONNECTION_ERROR"


TERMINAL_REQUEST_STATUSES = frozenset(
    {RequestStatus.SUCCEEDED, RequestStatus.FAILED, RequestStatus.FAILED_CONNECTION_ERROR}
)


class OrderStatus(str, Enum):
    UNKNOWN = "unknown"
    NEW = "new"
    PAID = "paid"
    DONE = "done"


class TargetPlatform(str, Enum):
    PLAYSTATION_NETWORK = "playstation_network"
    XBOX_LIVE = "xbox_live"
    NINTENDO_SHOP = "nintendo_shop"


# ---------------------------------------------------------------------------
# Outcome models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorRecord:
    status_code: int
    error_code: Union[int, str]
    message: str


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged outcome of one dispatched request: either a value or an error."""
    value: Optional[T] = None
    error: Optional[ErrorRecord] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Abstract persistence interface
# ---------------------------------------------------------------------------

class SaveStore(ABC):
    """Opaque key-value persistence used for the cart id and remembered login data."""

    @abstractmethod
    def load(self, slot: str) -> Optional[Dict[str, Any]]:
        """Return the saved document for a slot, or None when nothing was saved."""

    @abstractmethod
    def save(self, slot: str, data: Dict[str, Any]) -> None:
        """Replace the document stored under a slot."""

    @abstractmethod
    def delete(self, slot: str) -> None:
        """Drop a slot. Missing slots are ignored."""
