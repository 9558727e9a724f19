"""
Response Parser for Cisco Perfmon Client
========================================

This module turns perfmon SOAP responses into OperationResult values.

Parsing goes through a generic tree: every element becomes a dict of its
children, a leaf becomes its text and repeated siblings become a list. A
single repeated element therefore shows up as a bare value, which is why
every list-returning operation goes through as_list().

"""

import logging
from typing import Any, Optional, Union

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from cisco_perfmon.counter_path import decode_counter_path
from cisco_perfmon.exceptions import (
    MalformedPathError,
    PerfmonFaultError,
    PerfmonGeneralExceptionError,
    PerfmonHTTPError,
    PerfmonParsingError,
    PerfmonRateLimitError,
)
from cisco_perfmon.models import CounterSample, OperationResult, RawResponse

logger = logging.getLogger("cisco-perfmon")

ATTRIBUTE_KEY = "@attributes"
TEXT_KEY = "#text"

SUCCESS = "success"


def _local_name(tag: str) -> str:
    """Strip the namespace from an ElementTree tag or attribute name."""
    return tag.rsplit("}", 1)[-1].split(":")[-1]


def _element_to_tree(element: Any) -> Any:
    attributes = {_local_name(name): value for name, value in element.attrib.items()}
    children = list(element)

    if not children:
        text = (element.text or "").strip()
        if attributes:
            return {ATTRIBUTE_KEY: attributes, TEXT_KEY: text}
        return text

    node: dict[str, Any] = {}
    if attributes:
        node[ATTRIBUTE_KEY] = attributes

    for child in children:
        key = _local_name(child.tag)
        value = _element_to_tree(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]

    return node


def parse_xml(document: Union[str, bytes]) -> dict[str, Any]:
    """
    Parse an XML document into a generic tree rooted below the document element.

    Bytes are decoded by the parser according to the XML declaration.

    Raises:
        PerfmonParsingError: If the document is not well-formed XML
    """
    try:
        root = ElementTree.fromstring(document.strip())
    except (ElementTree.ParseError, DefusedXmlException) as e:
        raise PerfmonParsingError(
            "Failed to parse perfmon response XML",
            status_text="MalformedXML",
            details={"parse_error": str(e), "response": _preview(document)},
        ) from e

    tree = _element_to_tree(root)
    return tree if isinstance(tree, dict) else {}


def _preview(document: Union[str, bytes]) -> str:
    if isinstance(document, bytes):
        document = document.decode("utf-8", errors="replace")
    return document[:200]


def strip_attribute_keys(tree: Any) -> Any:
    """
    Remove attribute metadata from every node of a tree, lists included.

    A leaf that only carried attributes besides its text collapses back to
    the text.
    """
    if isinstance(tree, dict):
        stripped = {key: strip_attribute_keys(value) for key, value in tree.items() if key != ATTRIBUTE_KEY}
        if set(stripped) == {TEXT_KEY}:
            return stripped[TEXT_KEY]
        return stripped
    if isinstance(tree, list):
        return [strip_attribute_keys(item) for item in tree]
    return tree


def prune_empty(tree: Any) -> Any:
    """
    Drop None values, empty dicts and empty lists at every depth.

    Containers that become empty after pruning are dropped too. Returns a
    new structure; applying it twice gives the same result as once.
    """
    if isinstance(tree, dict):
        pruned_dict = {}
        for key, value in tree.items():
            value = prune_empty(value)
            if not _is_empty(value):
                pruned_dict[key] = value
        return pruned_dict
    if isinstance(tree, list):
        return [item for item in (prune_empty(value) for value in tree) if not _is_empty(item)]
    return tree


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (dict, list)) and not value)


def as_list(value: Any) -> list[Any]:
    """Coerce the single-or-many shape of a repeated element into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


class PerfmonResponseParser:
    """Parses perfmon SOAP responses into OperationResult values."""

    def parse_value(self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]] = None) -> OperationResult:
        """Single-value operations: open session, query counter description."""
        value = self._return_value(raw, operation, context)
        if value is None:
            return OperationResult(cookie=raw.cookie, results=None)
        return OperationResult(cookie=raw.cookie, results=prune_empty(value))

    def parse_success(self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]] = None) -> OperationResult:
        """Operations without a return value: close session, add/remove counter."""
        self._response_element(raw, operation, context)
        return OperationResult(cookie=raw.cookie, results=SUCCESS)

    def parse_records(
        self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]] = None
    ) -> OperationResult:
        """List operations returning plain records: list counter, list instance."""
        value = self._return_value(raw, operation, context)
        return OperationResult(cookie=raw.cookie, results=prune_empty(as_list(value)))

    def parse_samples(
        self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]] = None
    ) -> OperationResult:
        """Collect operations: decode every returned entry into a CounterSample."""
        value = self._return_value(raw, operation, context)
        entries = prune_empty(as_list(value))
        samples = [self._to_sample(entry, context) for entry in entries]
        logger.debug(f"📊 {operation}: {len(samples)} sample(s)")
        return OperationResult(cookie=raw.cookie, results=samples)

    def _to_sample(self, entry: Any, context: Optional[dict[str, Any]]) -> CounterSample:
        if not isinstance(entry, dict) or "Name" not in entry:
            raise MalformedPathError(str(entry), context=context)

        try:
            ref = decode_counter_path(entry["Name"])
        except MalformedPathError as e:
            e.context = dict(context or {})
            raise

        return CounterSample(
            host=ref.host,
            object=ref.object,
            instance=ref.instance,
            counter=ref.counter,
            value=entry.get("Value"),
            status=entry.get("CStatus"),
        )

    def _return_value(self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]]) -> Any:
        response = self._response_element(raw, operation, context)
        return_key = f"{operation}Return"

        if isinstance(response, dict) and return_key in response:
            return response[return_key]

        logger.debug(f"📭 {operation}: no {return_key} in response")
        return None

    def _response_element(self, raw: RawResponse, operation: str, context: Optional[dict[str, Any]]) -> Any:
        """Return the ``{operation}Response`` element or raise the classified failure."""
        body = self._load_body(raw, context)

        fault = body.get("Fault")
        if isinstance(fault, dict):
            raise self._classify_fault(fault, raw, context)

        response_key = f"{operation}Response"
        if not raw.ok or response_key not in body:
            logger.warning(f"⚠️ {operation}: unexpected HTTP {raw.status_code} response")
            raise PerfmonHTTPError(
                f"Unknown server error for {operation} (HTTP {raw.status_code})",
                status_code=raw.status_code,
                status_text="UnknownServerError",
                context=context,
            )

        return body[response_key]

    def _load_body(self, raw: RawResponse, context: Optional[dict[str, Any]]) -> dict[str, Any]:
        try:
            tree = strip_attribute_keys(parse_xml(raw.content))
        except PerfmonParsingError as e:
            if raw.ok:
                e.context = dict(context or {})
                e.status_code = raw.status_code
                raise
            raise PerfmonHTTPError(
                f"HTTP {raw.status_code} response without a SOAP body",
                status_code=raw.status_code,
                status_text="UnknownServerError",
                context=context,
            ) from e

        body = tree.get("Body") if isinstance(tree, dict) else None
        return body if isinstance(body, dict) else {}

    def _classify_fault(
        self, fault: dict[str, Any], raw: RawResponse, context: Optional[dict[str, Any]]
    ) -> PerfmonFaultError:
        fault_code = str(fault.get("faultcode", ""))
        fault_string = str(fault.get("faultstring", ""))

        if "RateControl" in fault_code:
            error_class: type[PerfmonFaultError] = PerfmonRateLimitError
            fault_code = "RateControl"
        elif "generalException" in fault_code:
            error_class = PerfmonGeneralExceptionError
            fault_code = "generalException"
        else:
            error_class = PerfmonFaultError

        logger.warning(f"⚠️ SOAP fault {fault_code}: {fault_string[:200]}")
        return error_class(
            f"Perfmon fault {fault_code}: {fault_string}",
            fault_code=fault_code,
            fault_string=fault_string,
            status_code=raw.status_code,
            context=context,
        )


__all__ = [
    "ATTRIBUTE_KEY",
    "PerfmonResponseParser",
    "as_list",
    "parse_xml",
    "prune_empty",
    "strip_attribute_keys",
]
