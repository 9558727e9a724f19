"""Tests for response parsing and normalization."""

import pytest

from cisco_perfmon import (
    CounterSample,
    MalformedPathError,
    PerfmonFaultError,
    PerfmonGeneralExceptionError,
    PerfmonHTTPError,
    PerfmonParsingError,
    PerfmonRateLimitError,
)
from cisco_perfmon.client.parser import (
    ATTRIBUTE_KEY,
    PerfmonResponseParser,
    as_list,
    parse_xml,
    prune_empty,
    strip_attribute_keys,
)
from cisco_perfmon.models import RawResponse


@pytest.fixture
def parser():
    return PerfmonResponseParser()


def raw(text, status_code=200, cookie=""):
    return RawResponse(status_code=status_code, content=text.encode("utf-8"), cookie=cookie)


@pytest.mark.unit
@pytest.mark.parser
class TestTreeHelpers:
    """Test the generic tree helpers."""

    def test_parse_xml_strips_namespaces(self, perfmon_responses):
        tree = parse_xml(perfmon_responses["open_session"])

        assert "Body" in tree
        assert "perfmonOpenSessionResponse" in tree["Body"]

    def test_parse_xml_keeps_attributes(self, perfmon_responses):
        tree = parse_xml(perfmon_responses["query_counter_description"])

        value = tree["Body"]["perfmonQueryCounterDescriptionResponse"]["perfmonQueryCounterDescriptionReturn"]
        assert value[ATTRIBUTE_KEY] == {"type": "xsd:string"}

    def test_parse_xml_repeated_elements_become_list(self, perfmon_responses):
        tree = parse_xml(perfmon_responses["list_instance_many"])

        returns = tree["Body"]["perfmonListInstanceResponse"]["perfmonListInstanceReturn"]
        assert isinstance(returns, list)
        assert len(returns) == 3

    def test_parse_xml_single_element_is_bare(self, perfmon_responses):
        tree = parse_xml(perfmon_responses["list_instance_single"])

        returns = tree["Body"]["perfmonListInstanceResponse"]["perfmonListInstanceReturn"]
        assert isinstance(returns, dict)

    def test_parse_xml_malformed(self):
        with pytest.raises(PerfmonParsingError):
            parse_xml("<Envelope><Body></Envelope>")

    def test_strip_attribute_keys_at_every_depth(self):
        tree = {
            ATTRIBUTE_KEY: {"a": "1"},
            "Body": {
                ATTRIBUTE_KEY: {"b": "2"},
                "items": [
                    {ATTRIBUTE_KEY: {"c": "3"}, "Name": "x"},
                    {ATTRIBUTE_KEY: {"type": "xsd:string"}, "#text": "y"},
                ],
            },
        }

        assert strip_attribute_keys(tree) == {"Body": {"items": [{"Name": "x"}, "y"]}}

    def test_prune_empty_removes_placeholders(self):
        tree = {"a": None, "b": {}, "c": [], "d": "", "e": {"f": {"g": None}}, "h": [{}, "x", None]}

        assert prune_empty(tree) == {"d": "", "h": ["x"]}

    def test_prune_empty_is_idempotent(self):
        tree = {"a": {"b": [{"c": None}, {"d": "1", "e": {}}]}, "f": [[], [None]], "g": "0"}

        once = prune_empty(tree)

        assert prune_empty(once) == once

    def test_prune_empty_does_not_mutate(self):
        tree = {"a": None, "b": {"c": {}}}

        prune_empty(tree)

        assert tree == {"a": None, "b": {"c": {}}}

    @pytest.mark.parametrize(
        "value,expected",
        [(None, []), ("x", ["x"]), ({"a": "1"}, [{"a": "1"}]), (["x", "y"], ["x", "y"])],
    )
    def test_as_list(self, value, expected):
        assert as_list(value) == expected


@pytest.mark.unit
@pytest.mark.parser
class TestSuccessfulResponses:
    """Test normalization of successful responses."""

    def test_collect_counter_data_samples(self, parser, perfmon_responses):
        result = parser.parse_samples(
            raw(perfmon_responses["collect_counter_data"]),
            "perfmonCollectCounterData",
        )

        assert result.results == [
            CounterSample(
                host="h1", object="Cisco CallManager", instance="", counter="CallsActive", value="5", status="1"
            ),
            CounterSample(
                host="h1", object="Cisco CallManager", instance="", counter="CallsAttempted", value="9", status="1"
            ),
        ]

    def test_single_sample_becomes_list(self, parser, perfmon_responses):
        result = parser.parse_samples(
            raw(perfmon_responses["collect_session_data"]),
            "perfmonCollectSessionData",
        )

        assert len(result.results) == 1
        sample = result.results[0]
        assert sample.object == "Processor"
        assert sample.instance == "_Total"
        assert sample.counter == "% CPU Time"
        assert sample.value == "12"

    def test_sample_values_stay_strings(self, parser, perfmon_responses):
        result = parser.parse_samples(
            raw(perfmon_responses["collect_counter_data"]),
            "perfmonCollectCounterData",
        )

        assert all(isinstance(sample.value, str) for sample in result.results)

    def test_missing_return_key_is_empty_success(self, parser, perfmon_responses):
        result = parser.parse_samples(raw(perfmon_responses["collect_empty"]), "perfmonCollectCounterData")

        assert result.results == []

    def test_missing_return_key_for_value_operation(self, parser, perfmon_responses):
        result = parser.parse_value(raw(perfmon_responses["close_session"]), "perfmonCloseSession")

        assert result.results is None

    def test_open_session_value(self, parser, perfmon_responses):
        result = parser.parse_value(raw(perfmon_responses["open_session"]), "perfmonOpenSession")

        assert result.results == "{A2B9F1E3-0C7D-4A5E-9F21-6C3D8E7B1A40}"

    def test_query_description_attribute_stripped(self, parser, perfmon_responses):
        result = parser.parse_value(
            raw(perfmon_responses["query_counter_description"]),
            "perfmonQueryCounterDescription",
        )

        assert result.results.startswith("The percentage of elapsed time")

    def test_encoding_follows_xml_declaration(self, parser):
        description = "Anzahl der Anrufe f\u00fcr den \u00dcberlauf"
        text = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"><soapenv:Body>'
            "<perfmonQueryCounterDescriptionResponse><perfmonQueryCounterDescriptionReturn>"
            f"{description}"
            "</perfmonQueryCounterDescriptionReturn></perfmonQueryCounterDescriptionResponse>"
            "</soapenv:Body></soapenv:Envelope>"
        )

        result = parser.parse_value(
            RawResponse(status_code=200, content=text.encode("iso-8859-1")),
            "perfmonQueryCounterDescription",
        )

        assert result.results == description

    def test_utf8_body_decoded(self, parser, perfmon_responses):
        text = perfmon_responses["query_counter_description"].replace("non-idle", "nicht-m\u00fc\u00dfig")

        result = parser.parse_value(raw(text), "perfmonQueryCounterDescription")

        assert "nicht-m\u00fc\u00dfig" in result.results

    def test_void_operation_success(self, parser, perfmon_responses):
        result = parser.parse_success(raw(perfmon_responses["add_counter"]), "perfmonAddCounter")

        assert result.results == "success"

    def test_list_instance_single_is_list(self, parser, perfmon_responses):
        result = parser.parse_records(raw(perfmon_responses["list_instance_single"]), "perfmonListInstance")

        assert result.results == [{"Name": "_Total"}]

    def test_list_counter_records(self, parser, perfmon_responses):
        result = parser.parse_records(raw(perfmon_responses["list_counter"]), "perfmonListCounter")

        assert [item["Name"] for item in result.results] == ["Cisco CallManager", "Processor"]
        assert result.results[0]["ArrayOfCounter"]["item"] == [{"Name": "CallsActive"}, {"Name": "CallsAttempted"}]

    def test_cookie_is_carried(self, parser, perfmon_responses):
        result = parser.parse_value(
            raw(perfmon_responses["open_session"], cookie="JSESSIONIDSSO=abc"),
            "perfmonOpenSession",
        )

        assert result.cookie == "JSESSIONIDSSO=abc"

    def test_return_key_nested_elsewhere_is_ignored(self, parser):
        text = (
            '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"><soapenv:Body>'
            "<perfmonListInstanceResponse><Other><perfmonListInstanceReturn><Name>x</Name>"
            "</perfmonListInstanceReturn></Other></perfmonListInstanceResponse>"
            "</soapenv:Body></soapenv:Envelope>"
        )

        result = parser.parse_records(raw(text), "perfmonListInstance")

        assert result.results == []


@pytest.mark.unit
@pytest.mark.parser
class TestFailureResponses:
    """Test fault classification and error propagation."""

    def test_rate_control_fault(self, parser, perfmon_responses):
        with pytest.raises(PerfmonRateLimitError) as exc_info:
            parser.parse_records(raw(perfmon_responses["rate_control_fault"], 500), "perfmonListCounter")

        assert exc_info.value.fault_code == "RateControl"
        assert "50 requests per minute" in exc_info.value.fault_string
        assert exc_info.value.status_code == 500

    def test_general_exception_fault(self, parser, perfmon_responses):
        with pytest.raises(PerfmonGeneralExceptionError) as exc_info:
            parser.parse_success(
                raw(perfmon_responses["general_exception_fault"], 500),
                "perfmonCloseSession",
                {"session_id": "bad"},
            )

        assert exc_info.value.fault_code == "generalException"
        assert exc_info.value.fault_string == "Invalid session handle"
        assert exc_info.value.context == {"session_id": "bad"}

    def test_other_fault_passes_through(self, parser, perfmon_responses):
        with pytest.raises(PerfmonFaultError) as exc_info:
            parser.parse_samples(raw(perfmon_responses["other_fault"], 500), "perfmonCollectCounterData")

        assert type(exc_info.value) is PerfmonFaultError
        assert exc_info.value.fault_code == "soapenv:Client"
        assert exc_info.value.fault_string == "Object Cisco Nonexistent not found"

    def test_non_xml_error_status(self, parser, perfmon_responses):
        with pytest.raises(PerfmonHTTPError) as exc_info:
            parser.parse_value(raw(perfmon_responses["html_error"], 401), "perfmonOpenSession")

        assert exc_info.value.status_code == 401

    def test_error_status_without_fault(self, parser, perfmon_responses):
        with pytest.raises(PerfmonHTTPError) as exc_info:
            parser.parse_value(raw(perfmon_responses["open_session"], 503), "perfmonOpenSession")

        assert exc_info.value.status_code == 503

    def test_success_status_without_response_element(self, parser, perfmon_responses):
        with pytest.raises(PerfmonHTTPError):
            parser.parse_success(raw(perfmon_responses["add_counter"]), "perfmonRemoveCounter")

    def test_malformed_xml_on_success(self, parser):
        with pytest.raises(PerfmonParsingError) as exc_info:
            parser.parse_value(raw("<Envelope><Body>"), "perfmonOpenSession")

        assert not isinstance(exc_info.value, PerfmonHTTPError)

    def test_malformed_path_propagates(self, parser):
        text = (
            '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"><soapenv:Body>'
            "<perfmonCollectCounterDataResponse><perfmonCollectCounterDataReturn>"
            "<Name>\\\\h1\\CallsActive</Name><Value>5</Value><CStatus>1</CStatus>"
            "</perfmonCollectCounterDataReturn></perfmonCollectCounterDataResponse>"
            "</soapenv:Body></soapenv:Envelope>"
        )

        with pytest.raises(MalformedPathError) as exc_info:
            parser.parse_samples(raw(text), "perfmonCollectCounterData", {"host": "h1"})

        assert exc_info.value.context == {"host": "h1"}

    def test_entry_without_name_is_malformed(self, parser):
        text = (
            '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"><soapenv:Body>'
            "<perfmonCollectSessionDataResponse><perfmonCollectSessionDataReturn>"
            "<Value>5</Value></perfmonCollectSessionDataReturn></perfmonCollectSessionDataResponse>"
            "</soapenv:Body></soapenv:Envelope>"
        )

        with pytest.raises(MalformedPathError):
            parser.parse_samples(raw(text), "perfmonCollectSessionData")
