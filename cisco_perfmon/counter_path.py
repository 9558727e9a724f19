"""
Counter Path Codec for Cisco Perfmon Client
===========================================

Perfmon addresses a counter with a single backslash-delimited string::

    \\\\HOST\\OBJECT(INSTANCE)\\COUNTER      instance counter
    \\\\HOST\\OBJECT\\COUNTER                single-instance counter

This module converts between that string and CounterReference.

The protocol has no escaping mechanism: a backslash or parenthesis inside a
host, object, instance or counter name cannot be represented and such names
decode incorrectly.

"""

import logging
import re
from typing import Iterable, Union
from xml.sax.saxutils import escape

from .exceptions import MalformedPathError
from .models import CounterReference

logger = logging.getLogger("cisco-perfmon")

PATH_SEPARATOR = "\\"

_INSTANCE_DELIMITERS = re.compile(r"[()]+")


def encode_counter_path(ref: CounterReference) -> str:
    """
    Encode a counter reference into its perfmon path.

    Args:
        ref: Counter to encode

    Returns:
        Path string with two leading separators, e.g. ``\\\\h\\O(I)\\C``
    """
    object_part = f"{ref.object}({ref.instance})" if ref.instance else ref.object
    return PATH_SEPARATOR * 2 + ref.host + PATH_SEPARATOR + object_part + PATH_SEPARATOR + ref.counter


def decode_counter_path(path: str) -> CounterReference:
    """
    Decode a perfmon path back into a counter reference.

    Args:
        path: Path string as found in a response ``Name`` element

    Returns:
        CounterReference with instance "" when the path has none

    Raises:
        MalformedPathError: If the path has fewer than three segments
    """
    if not isinstance(path, str):
        raise MalformedPathError(repr(path))

    segments = [segment for segment in path.split(PATH_SEPARATOR) if segment]
    if len(segments) < 3:
        raise MalformedPathError(path)

    object_parts = [part for part in _INSTANCE_DELIMITERS.split(segments[1]) if part]
    if not object_parts:
        raise MalformedPathError(path)

    return CounterReference(
        host=segments[0],
        object=object_parts[0],
        instance=object_parts[1] if len(object_parts) > 1 else "",
        counter=segments[2],
    )


def encode_counter_array(refs: Union[CounterReference, Iterable[CounterReference]]) -> str:
    """
    Encode one or more references as ``ArrayOfCounter`` content.

    Fragments are concatenated in input order with nothing between them.
    """
    if isinstance(refs, CounterReference):
        refs = [refs]

    fragments = [
        f"<soap:Counter><soap:Name>{escape(encode_counter_path(ref))}</soap:Name></soap:Counter>" for ref in refs
    ]
    logger.debug(f"🔧 Encoded {len(fragments)} counter(s)")
    return "".join(fragments)


__all__ = ["PATH_SEPARATOR", "decode_counter_path", "encode_counter_array", "encode_counter_path"]
