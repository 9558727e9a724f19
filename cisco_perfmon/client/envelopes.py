"""
SOAP Envelope Builder for Cisco Perfmon Client
==============================================

One pure function per perfmon operation. Each returns a complete SOAP 1.1
request body; none of them touch the network or any shared state.

"""

from typing import Iterable, Union
from xml.sax.saxutils import escape

from cisco_perfmon.counter_path import encode_counter_array, encode_counter_path
from cisco_perfmon.models import CounterReference

OPEN_SESSION = "perfmonOpenSession"
CLOSE_SESSION = "perfmonCloseSession"
ADD_COUNTER = "perfmonAddCounter"
REMOVE_COUNTER = "perfmonRemoveCounter"
COLLECT_SESSION_DATA = "perfmonCollectSessionData"
COLLECT_COUNTER_DATA = "perfmonCollectCounterData"
LIST_COUNTER = "perfmonListCounter"
LIST_INSTANCE = "perfmonListInstance"
QUERY_COUNTER_DESCRIPTION = "perfmonQueryCounterDescription"

ENVELOPE_TEMPLATE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    'xmlns:soap="http://schemas.cisco.com/ast/soap">'
    "<soapenv:Header/>"
    "<soapenv:Body>{operation_element}</soapenv:Body>"
    "</soapenv:Envelope>"
)

Counters = Union[CounterReference, Iterable[CounterReference]]


def _envelope(operation: str, params: str = "") -> str:
    if params:
        element = f"<soap:{operation}>{params}</soap:{operation}>"
    else:
        element = f"<soap:{operation}/>"
    return ENVELOPE_TEMPLATE.format(operation_element=element)


def _param(name: str, value: str) -> str:
    return f"<soap:{name}>{escape(str(value))}</soap:{name}>"


def build_open_session() -> str:
    return _envelope(OPEN_SESSION)


def build_close_session(session_handle: str) -> str:
    return _envelope(CLOSE_SESSION, _param("SessionHandle", session_handle))


def build_add_counter(session_handle: str, counters: Counters) -> str:
    """Body for perfmonAddCounter; counters keep their input order."""
    params = _param("SessionHandle", session_handle) + (
        f"<soap:ArrayOfCounter>{encode_counter_array(counters)}</soap:ArrayOfCounter>"
    )
    return _envelope(ADD_COUNTER, params)


def build_remove_counter(session_handle: str, counters: Counters) -> str:
    """Body for perfmonRemoveCounter; counters keep their input order."""
    params = _param("SessionHandle", session_handle) + (
        f"<soap:ArrayOfCounter>{encode_counter_array(counters)}</soap:ArrayOfCounter>"
    )
    return _envelope(REMOVE_COUNTER, params)


def build_collect_session_data(session_handle: str) -> str:
    return _envelope(COLLECT_SESSION_DATA, _param("SessionHandle", session_handle))


def build_collect_counter_data(host: str, perfmon_object: str) -> str:
    return _envelope(COLLECT_COUNTER_DATA, _param("Host", host) + _param("Object", perfmon_object))


def build_list_counter(host: str) -> str:
    return _envelope(LIST_COUNTER, _param("Host", host))


def build_list_instance(host: str, perfmon_object: str) -> str:
    return _envelope(LIST_INSTANCE, _param("Host", host) + _param("Object", perfmon_object))


def build_query_counter_description(counter: CounterReference) -> str:
    """The counter path goes bare inside ``Counter``, without a ``Name`` wrapper."""
    return _envelope(QUERY_COUNTER_DESCRIPTION, _param("Counter", encode_counter_path(counter)))


__all__ = [
    "ADD_COUNTER",
    "CLOSE_SESSION",
    "COLLECT_COUNTER_DATA",
    "COLLECT_SESSION_DATA",
    "LIST_COUNTER",
    "LIST_INSTANCE",
    "OPEN_SESSION",
    "QUERY_COUNTER_DESCRIPTION",
    "REMOVE_COUNTER",
    "build_add_counter",
    "build_close_session",
    "build_collect_counter_data",
    "build_collect_session_data",
    "build_list_counter",
    "build_list_instance",
    "build_open_session",
    "build_query_counter_description",
]
