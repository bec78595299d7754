"""JSON decoding for API response bodies.

Decoding never raises: callers receive either ``Ok(value)`` or
``Err(kind, message)`` and decide how to surface a failure.
"""

import json
from dataclasses import dataclass
from typing import Any, Union

from maxemail.exceptions import UnexpectedValueError


@dataclass(frozen=True)
class Ok:
    """Successfully decoded value."""

    value: Any


@dataclass(frozen=True)
class Err:
    """Decoding failure with a short error kind and readable message."""

    kind: str
    message: str

    def to_exception(self, text: str) -> UnexpectedValueError:
        return UnexpectedValueError(f"Problem decoding JSON : {self.message} : '{text}'")


DecodeResult = Union[Ok, Err]

ERROR_MESSAGES = {
    "depth": "Maximum stack depth exceeded",
    "syntax": "Syntax error",
    "ctrl_char": "Unexpected control character found",
    "utf8": "Malformed UTF-8 characters, possibly incorrectly encoded",
    "unknown": "Unknown error",
}


def decode_json(text: str | bytes) -> DecodeResult:
    """Decode a JSON document into plain Python values.

    Args:
        text: JSON document, as text or UTF-8 encoded bytes

    Returns:
        Ok with the decoded value, or Err describing the failure
    """
    try:
        return Ok(json.loads(text))
    except RecursionError:
        kind = "depth"
    except UnicodeDecodeError:
        kind = "utf8"
    except json.JSONDecodeError as e:
        kind = "ctrl_char" if e.msg.startswith("Invalid control character") else "syntax"
    except (TypeError, ValueError):
        kind = "unknown"
    return Err(kind, ERROR_MESSAGES[kind])


def unwrap(text: str | bytes) -> Any:
    """Decode JSON, raising UnexpectedValueError on failure."""
    result = decode_json(text)
    if isinstance(result, Err):
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        raise result.to_exception(text)
    return result.value
