"""
JSON extraction helpers for structured model output.

Models often wrap JSON in markdown code blocks or surround it with prose.
These helpers pull the first JSON object or array out of such text.
"""

import json
import re
from typing import Any

from travelgraph.shared.errors import ParseError


_CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json_from_response(raw_response: str) -> str:
    """
    Extract JSON content from a model response.

    Handles multiple formats:
    - Raw JSON
    - JSON in markdown code blocks (```json ... ```)
    - JSON embedded after leading prose

    Args:
        raw_response: Raw model response string

    Returns:
        Cleaned JSON string ready for parsing
    """
    content = (raw_response or "").strip()

    match = _CODE_BLOCK_PATTERN.search(content)
    if match:
        content = match.group(1).strip()

    # Skip any prose before the first bracket
    starts = [i for i in (content.find("{"), content.find("[")) if i >= 0]
    if not starts:
        return content
    content = content[min(starts):]

    opening = content[0]
    closing = "}" if opening == "{" else "]"
    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(content):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return content[: i + 1]

    # No balanced end found, let the JSON parser report it
    return content


def parse_json_payload(raw_response: str) -> Any:
    """
    Parse the first JSON value found in a model response.

    Args:
        raw_response: Raw model response string

    Returns:
        Decoded JSON value

    Raises:
        ParseError: If no valid JSON could be decoded
    """
    json_str = extract_json_from_response(raw_response)
    if not json_str:
        raise ParseError("Empty response, expected JSON")

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse JSON: {e}\nContent: {json_str[:500]}")
