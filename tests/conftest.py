from typing import Optional
from unittest.mock import Mock, patch

import pytest

SOAP_PREFIX = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
    'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
    "<soapenv:Body>"
)
SOAP_SUFFIX = "</soapenv:Body></soapenv:Envelope>"


def soap(body: str) -> str:
    """Wrap body content in a SOAP response envelope."""
    return SOAP_PREFIX + body + SOAP_SUFFIX


def counter_info(name: str, value: str, cstatus: str = "1") -> str:
    return (
        '<ns1:{op}Return xsi:type="ns1:CounterInfoType">'
        f'<ns1:Name xsi:type="ns1:CounterNameType">{name}</ns1:Name>'
        f'<ns1:Value xsi:type="xsd:long">{value}</ns1:Value>'
        f'<ns1:CStatus xsi:type="xsd:unsignedInt">{cstatus}</ns1:CStatus>'
        "</ns1:{op}Return>"
    )


def operation_response(operation: str, content: str = "") -> str:
    content = content.replace("{op}", operation)
    return soap(
        f'<ns1:{operation}Response xmlns:ns1="http://schemas.cisco.com/ast/soap">'
        + content
        + f"</ns1:{operation}Response>"
    )


def fault(code: str, message: str) -> str:
    return soap(
        "<soapenv:Fault>"
        f"<faultcode>{code}</faultcode>"
        f"<faultstring>{message}</faultstring>"
        "</soapenv:Fault>"
    )


@pytest.fixture
def perfmon_responses():
    """Fixture providing representative perfmon SOAP responses."""
    return {
        "open_session": operation_response(
            "perfmonOpenSession",
            '<ns1:perfmonOpenSessionReturn xsi:type="ns1:SessionHandleType">'
            "{A2B9F1E3-0C7D-4A5E-9F21-6C3D8E7B1A40}"
            "</ns1:perfmonOpenSessionReturn>",
        ),
        "close_session": operation_response("perfmonCloseSession"),
        "add_counter": operation_response("perfmonAddCounter"),
        "remove_counter": operation_response("perfmonRemoveCounter"),
        "collect_counter_data": operation_response(
            "perfmonCollectCounterData",
            counter_info("\\\\h1\\Cisco CallManager\\CallsActive", "5")
            + counter_info("\\\\h1\\Cisco CallManager\\CallsAttempted", "9"),
        ),
        "collect_session_data": operation_response(
            "perfmonCollectSessionData",
            counter_info("\\\\h1\\Processor(_Total)\\% CPU Time", "12"),
        ),
        "collect_empty": operation_response("perfmonCollectCounterData"),
        "list_counter": operation_response(
            "perfmonListCounter",
            "<ns1:perfmonListCounterReturn>"
            "<ns1:Name>Cisco CallManager</ns1:Name>"
            "<ns1:MultiInstance>false</ns1:MultiInstance>"
            "<ns1:ArrayOfCounter>"
            "<ns1:item><ns1:Name>CallsActive</ns1:Name></ns1:item>"
            "<ns1:item><ns1:Name>CallsAttempted</ns1:Name></ns1:item>"
            "</ns1:ArrayOfCounter>"
            "</ns1:perfmonListCounterReturn>"
            "<ns1:perfmonListCounterReturn>"
            "<ns1:Name>Processor</ns1:Name>"
            "<ns1:MultiInstance>true</ns1:MultiInstance>"
            "<ns1:ArrayOfCounter>"
            "<ns1:item><ns1:Name>% CPU Time</ns1:Name></ns1:item>"
            "</ns1:ArrayOfCounter>"
            "</ns1:perfmonListCounterReturn>",
        ),
        "list_instance_single": operation_response(
            "perfmonListInstance",
            '<ns1:perfmonListInstanceReturn xsi:type="ns1:InstanceType">'
            '<ns1:Name xsi:type="ns1:InstanceNameType">_Total</ns1:Name>'
            "</ns1:perfmonListInstanceReturn>",
        ),
        "list_instance_many": operation_response(
            "perfmonListInstance",
            "<ns1:perfmonListInstanceReturn><ns1:Name>0</ns1:Name></ns1:perfmonListInstanceReturn>"
            "<ns1:perfmonListInstanceReturn><ns1:Name>1</ns1:Name></ns1:perfmonListInstanceReturn>"
            "<ns1:perfmonListInstanceReturn><ns1:Name>_Total</ns1:Name></ns1:perfmonListInstanceReturn>",
        ),
        "query_counter_description": operation_response(
            "perfmonQueryCounterDescription",
            '<ns1:perfmonQueryCounterDescriptionReturn xsi:type="xsd:string">'
            "The percentage of elapsed time that the processor spends executing a non-idle thread."
            "</ns1:perfmonQueryCounterDescriptionReturn>",
        ),
        "rate_control_fault": fault(
            "soapenv:Server.RateControl",
            "Exceeded allowed rate for Perfmon information. Current allowed rate is 50 requests per minute.",
        ),
        "general_exception_fault": fault(
            "soapenv:Server.generalException",
            "Invalid session handle",
        ),
        "other_fault": fault("soapenv:Client", "Object Cisco Nonexistent not found"),
        "html_error": "<html><head><title>401 Unauthorized</title></head><body><p>Denied</body></html>",
    }


@pytest.fixture
def http_response():
    """Factory for mocked requests.Response objects."""

    def _make(text: str, status_code: int = 200, cookie: str = "", content: Optional[bytes] = None) -> Mock:
        headers = {"Set-Cookie": cookie} if cookie else {}
        body = text.encode("utf-8") if content is None else content
        return Mock(status_code=status_code, text=text, content=body, headers=headers)

    return _make


@pytest.fixture
def client_kwargs():
    """Default client kwargs for testing."""
    return {
        "host": "cucm-pub",
        "username": "axl",
        "password": "secret",
        "max_attempts": 3,
        "retry_delay": 0.0,
        "enable_instrumentation": True,
    }


@pytest.fixture
def mock_post():
    """Patch requests.Session.post for the duration of a test."""
    with patch("requests.Session.post") as post:
        yield post


@pytest.fixture
def no_sleep():
    """Skip the delay between retry attempts."""
    with patch("cisco_perfmon.client.http.time.sleep") as sleep:
        yield sleep
