"""
Cisco Perfmon Client Library
============================

Python library for collecting performance counter (perfmon) data from
Cisco Unified Communications Manager through its SOAP perfmon service.

Responses are normalized into flat records: counter paths such as
``\\\\cucm-pub\\Processor(_Total)\\% CPU Time`` are decoded into host,
object, instance and counter fields.

Quick Start:
    Ad hoc collection of every counter of an object:

    >>> from cisco_perfmon import PerfmonClient
    >>> with PerfmonClient("cucm-pub", username="axl", password="secret") as client:
    ...     result = client.collect_counter_data("cucm-pub", "Cisco CallManager")
    ...     for sample in result.results:
    ...         print(f"{sample.counter}: {sample.value}")

Session-based collection:

    >>> from cisco_perfmon import CounterReference
    >>> ref = CounterReference(host="cucm-pub", object="Processor", instance="_Total", counter="% CPU Time")
    >>> handle = client.open_session().results
    >>> client.add_counter(handle, ref)
    >>> samples = client.collect_session_data(handle).results
    >>> client.close_session(handle)

Error Handling:
    Every failure raises a PerfmonError subclass:

    >>> from cisco_perfmon import PerfmonRateLimitError
    >>> try:
    ...     client.list_counter("cucm-pub")
    ... except PerfmonRateLimitError as e:
    ...     print(f"Rate limited: {e.fault_string}")

This is an unofficial library not affiliated with Cisco Systems.

Author: Charles Marshall
License: MIT
"""

from .client.main import PerfmonClient
from .config import PerfmonConfig
from .counter_path import decode_counter_path, encode_counter_path
from .exceptions import (
    MalformedPathError,
    PerfmonConfigurationError,
    PerfmonConnectionError,
    PerfmonError,
    PerfmonFaultError,
    PerfmonGeneralExceptionError,
    PerfmonHTTPError,
    PerfmonParsingError,
    PerfmonRateLimitError,
    PerfmonTimeoutError,
)
from .models import CounterReference, CounterSample, OperationResult

# Version information
__version__ = "1.0.0"
__author__ = "Charles Marshall"
__license__ = "MIT"

# Public API
__all__ = [
    "CounterReference",
    "CounterSample",
    "MalformedPathError",
    "OperationResult",
    "PerfmonClient",
    "PerfmonConfig",
    "PerfmonConfigurationError",
    "PerfmonConnectionError",
    "PerfmonError",
    "PerfmonFaultError",
    "PerfmonGeneralExceptionError",
    "PerfmonHTTPError",
    "PerfmonParsingError",
    "PerfmonRateLimitError",
    "PerfmonTimeoutError",
    "__author__",
    "__license__",
    "__version__",
    "decode_counter_path",
    "encode_counter_path",
]
