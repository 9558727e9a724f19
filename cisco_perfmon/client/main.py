"""
Main Cisco Perfmon Client
=========================

This module contains PerfmonClient, the public surface of the library: one
method per perfmon SOAP operation.

Every call builds its own PerfmonRequest (body and headers) from the
client's frozen configuration, so one client can be shared between threads
without calls seeing each other's SOAPAction header.

Author: Charles Marshall
Version: 1.0.0
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from cisco_perfmon.client import envelopes
from cisco_perfmon.client.http import PerfmonRequestHandler, create_perfmon_session
from cisco_perfmon.client.parser import PerfmonResponseParser
from cisco_perfmon.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_PORT, DEFAULT_RETRY_DELAY, PerfmonConfig
from cisco_perfmon.exceptions import PerfmonConfigurationError
from cisco_perfmon.instrumentation import PerformanceInstrumentation
from cisco_perfmon.models import CounterReference, CounterSample, OperationResult, RawResponse

logger = logging.getLogger("cisco-perfmon")

Counters = Union[CounterReference, Iterable[CounterReference]]


class PerfmonClient:
    """
    Client for the Cisco Unified CM perfmon SOAP service.

    Session-based collection uses the operations in sequence:

        open_session -> add_counter -> collect_session_data (repeated)
        -> remove_counter -> close_session

    collect_counter_data, list_counter, list_instance and
    query_counter_description need no session.

    Retries: read operations are attempted up to ``max_attempts`` times in
    total. The session-mutating operations (open/add/remove/close) are sent
    once unless
    ``retry_mutations`` is True, because a retried add after a lost
    response registers the counter twice.

    Examples:
        >>> with PerfmonClient("cucm-pub", username="axl", password="secret") as client:
        ...     handle = client.open_session().results
        ...     ref = CounterReference(host="cucm-pub", object="Cisco CallManager", counter="CallsActive")
        ...     client.add_counter(handle, ref)
        ...     for sample in client.collect_session_data(handle).results:
        ...         print(sample.counter, sample.value)
        ...     client.close_session(handle)
    """

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        cookie: Optional[str] = None,
        port: int = DEFAULT_PORT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        retry_mutations: bool = False,
        timeout: Optional[Any] = None,
        auth_headers: Optional[dict[str, str]] = None,
        enable_instrumentation: bool = True,
    ):
        """
        Initialize the perfmon client.

        Args:
            host: Server to send requests to, usually the CUCM publisher
            username: AXL/perfmon username (omit when using a cookie)
            password: Password for username
            cookie: Continuation cookie from an earlier response, sent
                instead of basic auth
            port: HTTPS port (default: 8443)
            max_attempts: Total attempts per read operation (default: 3)
            retry_delay: Seconds between attempts (default: 3.0)
            retry_mutations: Retry open/add/remove/close too (default: False)
            timeout: requests timeout for each attempt (default: None)
            auth_headers: Extra headers merged into every request; a Cookie or
                Authorization entry replaces username/password
            enable_instrumentation: Record per-request timing (default: True)
        """
        self.config = PerfmonConfig(
            host=host,
            username=username,
            password=password,
            cookie=cookie,
            port=port,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            retry_mutations=retry_mutations,
            timeout=timeout,
            auth_headers=dict(auth_headers or {}),
        )

        self.instrumentation = PerformanceInstrumentation() if enable_instrumentation else None

        header_auth = any(name.lower() == "authorization" for name in self.config.auth_headers)
        use_basic_auth = not self.config.cookie and not header_auth
        self.session = create_perfmon_session(
            username=self.config.username if use_basic_auth else None,
            password=self.config.password if use_basic_auth else None,
        )

        default_headers = {"Cookie": self.config.cookie} if self.config.cookie else {}
        default_headers.update(self.config.auth_headers)

        self.request_handler = PerfmonRequestHandler(
            session=self.session,
            base_url=self.config.base_url,
            max_attempts=self.config.max_attempts,
            retry_delay=self.config.retry_delay,
            timeout=self.config.timeout,
            default_headers=default_headers,
            instrumentation=self.instrumentation,
        )
        self.parser = PerfmonResponseParser()

        if self.config.cookie:
            auth_str = "cookie"
        elif use_basic_auth and self.config.username:
            auth_str = "basic auth"
        else:
            auth_str = "auth headers"
        logger.info(f"🛡️ PerfmonClient initialized for {host}:{port} ({auth_str})")
        logger.info(f"🔧 Attempts: {max_attempts}, delay: {retry_delay}s, retry mutations: {retry_mutations}")

    @classmethod
    def from_config(cls, config: PerfmonConfig, enable_instrumentation: bool = True) -> "PerfmonClient":
        """Build a client from a PerfmonConfig, e.g. PerfmonConfig.from_env()."""
        return cls(
            host=config.host,
            username=config.username,
            password=config.password,
            cookie=config.cookie,
            port=config.port,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
            retry_mutations=config.retry_mutations,
            timeout=config.timeout,
            auth_headers=dict(config.auth_headers),
            enable_instrumentation=enable_instrumentation,
        )

    # Session-based collection

    def open_session(self) -> OperationResult[Optional[str]]:
        """
        Obtain a session handle for session-based collection.

        Returns:
            OperationResult whose results is the opaque session handle
        """
        raw = self._send(envelopes.OPEN_SESSION, envelopes.build_open_session(), retry=self.config.retry_mutations)
        return self.parser.parse_value(raw, envelopes.OPEN_SESSION, {})

    def close_session(self, session_handle: str) -> OperationResult[str]:
        """
        Close a session handle opened with open_session().

        The handle must not be used again afterwards. An unknown or expired
        handle fails with a server fault.
        """
        context = self._context(session_id=session_handle)
        raw = self._send(
            envelopes.CLOSE_SESSION,
            envelopes.build_close_session(session_handle),
            retry=self.config.retry_mutations,
        )
        return self.parser.parse_success(raw, envelopes.CLOSE_SESSION, context)

    def add_counter(self, session_handle: str, counters: Counters) -> OperationResult[str]:
        """
        Add one or more counters to a session.

        Use list_counter() to find counter names and list_instance() for the
        instances of a multi-instance object.

        Args:
            session_handle: Handle returned by open_session()
            counters: A CounterReference or an iterable of them

        Returns:
            OperationResult with results "success"
        """
        refs = self._counter_list(counters)
        context = self._context(session_id=session_handle)
        raw = self._send(
            envelopes.ADD_COUNTER,
            envelopes.build_add_counter(session_handle, refs),
            retry=self.config.retry_mutations,
        )
        return self.parser.parse_success(raw, envelopes.ADD_COUNTER, context)

    def remove_counter(self, session_handle: str, counters: Counters) -> OperationResult[str]:
        """Remove one or more counters from a session."""
        refs = self._counter_list(counters)
        context = self._context(session_id=session_handle)
        raw = self._send(
            envelopes.REMOVE_COUNTER,
            envelopes.build_remove_counter(session_handle, refs),
            retry=self.config.retry_mutations,
        )
        return self.parser.parse_success(raw, envelopes.REMOVE_COUNTER, context)

    def collect_session_data(self, session_handle: str) -> OperationResult[List[CounterSample]]:
        """Collect the current values of every counter registered to the session."""
        context = self._context(session_id=session_handle)
        raw = self._send(envelopes.COLLECT_SESSION_DATA, envelopes.build_collect_session_data(session_handle))
        return self.parser.parse_samples(raw, envelopes.COLLECT_SESSION_DATA, context)

    # Single-transaction operations

    def collect_counter_data(self, host: str, perfmon_object: str) -> OperationResult[List[CounterSample]]:
        """
        Collect every counter of an object on a host in one request.

        For a multi-instance object, samples for all instances are returned.

        Args:
            host: Node to collect from (any node of the cluster)
            perfmon_object: Perfmon object name, e.g. "Cisco CallManager"
        """
        context = self._context(host=host, object=perfmon_object)
        raw = self._send(envelopes.COLLECT_COUNTER_DATA, envelopes.build_collect_counter_data(host, perfmon_object))
        return self.parser.parse_samples(raw, envelopes.COLLECT_COUNTER_DATA, context)

    def list_counter(
        self, host: str, filter_names: Optional[Iterable[str]] = None
    ) -> OperationResult[List[dict[str, Any]]]:
        """
        List the perfmon objects and their counters available on a host.

        Args:
            host: Node to query
            filter_names: Optional object names to keep; applied to the
                ``Name`` of each returned object after the full list arrives

        Returns:
            OperationResult with one record per object
        """
        context = self._context(host=host)
        raw = self._send(envelopes.LIST_COUNTER, envelopes.build_list_counter(host))
        result = self.parser.parse_records(raw, envelopes.LIST_COUNTER, context)

        if filter_names is None:
            return result

        wanted = set(filter_names)
        if not wanted:
            return result

        filtered = [item for item in result.results if isinstance(item, dict) and item.get("Name") in wanted]
        logger.debug(f"🔍 list_counter filter kept {len(filtered)}/{len(result.results)} object(s)")
        return OperationResult(cookie=result.cookie, results=filtered)

    def list_instance(self, host: str, perfmon_object: str) -> OperationResult[List[dict[str, Any]]]:
        """List the current instances of an object. Always a list, even for one instance."""
        context = self._context(host=host, object=perfmon_object)
        raw = self._send(envelopes.LIST_INSTANCE, envelopes.build_list_instance(host, perfmon_object))
        return self.parser.parse_records(raw, envelopes.LIST_INSTANCE, context)

    def query_counter_description(self, counter: CounterReference) -> OperationResult[Optional[str]]:
        """Return the human-readable description of a counter."""
        context = self._context(host=counter.host, object=counter.object)
        raw = self._send(
            envelopes.QUERY_COUNTER_DESCRIPTION,
            envelopes.build_query_counter_description(counter),
        )
        return self.parser.parse_value(raw, envelopes.QUERY_COUNTER_DESCRIPTION, context)

    # Diagnostics

    def get_performance_summary(self) -> dict[str, Any]:
        """Timing summary of all requests made by this client."""
        if not self.instrumentation:
            return {"error": "Performance instrumentation not enabled"}
        return self.instrumentation.get_performance_summary()

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()
        logger.debug("🔒 PerfmonClient session closed")

    def __enter__(self) -> "PerfmonClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # Internals

    def _send(self, operation: str, body: str, retry: bool = True) -> RawResponse:
        request = self.request_handler.build_request(operation, body, retry=retry)
        return self.request_handler.send(request)

    @staticmethod
    def _context(**values: Optional[str]) -> dict[str, str]:
        return {key: value for key, value in values.items() if value is not None}

    @staticmethod
    def _counter_list(counters: Counters) -> list[CounterReference]:
        refs = [counters] if isinstance(counters, CounterReference) else list(counters)
        if not refs:
            raise PerfmonConfigurationError(
                "At least one counter is required",
                details={"parameter": "counters"},
            )
        for ref in refs:
            if not isinstance(ref, CounterReference):
                raise PerfmonConfigurationError(
                    f"Expected CounterReference, got {type(ref).__name__}",
                    details={"parameter": "counters", "value": repr(ref)},
                )
        return refs


__all__ = ["PerfmonClient"]
