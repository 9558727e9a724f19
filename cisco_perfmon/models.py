"""
Data Models for Cisco Perfmon Client
====================================

This module contains all dataclasses and data models used by the
Cisco Perfmon Client.

"""

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class TimingMetrics:
    """Detailed timing metrics for performance analysis."""

    operation: str
    start_time: float
    end_time: float
    duration: float
    success: bool
    error_type: Optional[str] = None
    retry_count: int = 0
    http_status: Optional[int] = None
    response_size: int = 0

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        return self.duration * 1000


@dataclass(frozen=True)
class CounterReference:
    """
    Identifies a single perfmon counter on a host.

    Attributes:
        host: Node the counter lives on (e.g. "cucm-pub")
        object: Perfmon object, the counter category (e.g. "Cisco CallManager")
        counter: Counter name within the object (e.g. "CallsActive")
        instance: Optional instance of a multi-instance object (e.g. "_Total")

    Examples:
        >>> CounterReference(host="cucm-pub", object="Cisco CallManager", counter="CallsActive")
        >>> CounterReference(host="cucm-pub", object="Processor", instance="_Total", counter="% CPU Time")
    """

    host: str
    object: str
    counter: str
    instance: str = ""

    @property
    def path(self) -> str:
        """The encoded counter path, e.g. ``\\\\host\\Object(instance)\\Counter``."""
        from .counter_path import encode_counter_path

        return encode_counter_path(self)


@dataclass(frozen=True)
class CounterSample:
    """
    One measured counter value, as returned by the collect operations.

    ``value`` is kept as the string the server sent; ``status`` is the
    server's CStatus code for the counter (also a string).
    """

    host: str
    object: str
    counter: str
    instance: str = ""
    value: Optional[str] = None
    status: Optional[str] = None

    @property
    def reference(self) -> CounterReference:
        """The counter this sample was measured for."""
        return CounterReference(host=self.host, object=self.object, counter=self.counter, instance=self.instance)

    def to_dict(self) -> dict[str, Any]:
        """Flat record of the sample, without fields the server left out."""
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Normalized return value of every client operation.

    Attributes:
        cookie: Set-Cookie value of the response, "" when the server sent none
        results: Operation specific payload; [] or None when the server
            returned no data
    """

    cookie: str
    results: T


@dataclass(frozen=True)
class PerfmonRequest:
    """A fully built outbound request. Created per call and never mutated."""

    operation: str
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    retry: bool = True


@dataclass(frozen=True)
class RawResponse:
    """
    What the transport hands back: status, untouched body bytes and cookie.

    The body stays bytes so the XML declaration decides its encoding.
    """

    status_code: int
    content: bytes
    cookie: str = ""

    @property
    def ok(self) -> bool:
        """True for a 2xx status."""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, for log and error messages only."""
        return self.content.decode("utf-8", errors="replace")


# Export all models
__all__ = [
    "CounterReference",
    "CounterSample",
    "OperationResult",
    "PerfmonRequest",
    "RawResponse",
    "TimingMetrics",
]
