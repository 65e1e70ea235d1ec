"""
dump.py
Renders a built OTLP request for diagnostics.

Formats:
- human: multi-line protobuf text format
- text:  single-line protobuf text format
- json:  indented JSON (indent string chosen by the caller)
- yaml:  YAML
- hex:   protobuf wire bytes as a hex dump (offset, bytes, ASCII)
"""

from __future__ import annotations

import json
import logging
from typing import Callable

import yaml
from google.protobuf import json_format, text_format
from google.protobuf.message import EncodeError, Message

logger = logging.getLogger(__name__)

DUMP_FORMAT_HUMAN = "human"
DUMP_FORMAT_TEXT = "text"
DUMP_FORMAT_JSON = "json"
DUMP_FORMAT_YAML = "yaml"
DUMP_FORMAT_HEX = "hex"

DUMP_FORMATS = (DUMP_FORMAT_HUMAN, DUMP_FORMAT_TEXT, DUMP_FORMAT_JSON, DUMP_FORMAT_YAML, DUMP_FORMAT_HEX)

DEFAULT_JSON_INDENT = "  "


def hex_dump(data: bytes) -> str:
    """
    Classic 16-bytes-per-line dump:

        00000000  68 65 6c 6c 6f 20 77 6f  72 6c 64 0a              |hello world.|
    """
    lines = []
    for offset in range(0, len(data), 16):
        chunk = data[offset:offset + 16]
        hex_part = ""
        for i in range(16):
            hex_part += f"{chunk[i]:02x} " if i < len(chunk) else "   "
            if i == 7:
                hex_part += " "
        ascii_part = "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk)
        lines.append(f"{offset:08x}  {hex_part} |{ascii_part}|\n")
    return "".join(lines)


def _to_dict(m: Message) -> dict:
    return json_format.MessageToDict(m, preserving_proto_field_name=True)


def render_payload(m: Message, fmt: str, json_indent: str = DEFAULT_JSON_INDENT) -> str:
    """
    Returns the rendering of m in fmt. Byte-sourced formats (text, json, yaml)
    end with a newline. Raises ValueError for an unknown format.
    """
    if fmt == DUMP_FORMAT_HUMAN:
        return text_format.MessageToString(m, as_utf8=True)
    if fmt == DUMP_FORMAT_TEXT:
        return text_format.MessageToString(m, as_one_line=True) + "\n"
    if fmt == DUMP_FORMAT_JSON:
        return json.dumps(_to_dict(m), indent=json_indent) + "\n"
    if fmt == DUMP_FORMAT_YAML:
        return yaml.safe_dump(_to_dict(m), sort_keys=False) + "\n"
    if fmt == DUMP_FORMAT_HEX:
        return hex_dump(m.SerializeToString())

    raise ValueError(f"unknown dump format: {fmt!r} (expected one of {', '.join(DUMP_FORMATS)})")


def dump_payload(
    m: Message,
    fmt: str,
    writer: Callable[[str], None],
    json_indent: str = DEFAULT_JSON_INDENT,
) -> None:
    """
    Renders m and hands the text to writer. A rendering failure is fatal:
    it is logged and the process exits.
    """
    try:
        s = render_payload(m, fmt, json_indent)
    except (EncodeError, TypeError, ValueError, yaml.YAMLError) as e:
        logger.critical("Unable to marshal MELT data to %s format: %s", fmt, e)
        raise SystemExit(1) from e

    writer(s)
