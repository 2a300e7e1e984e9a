import json
import re
from typing import Any, Dict, List, Union

from sheetlink.utils.logging import get_logger

LOGGER = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def parse_json_safely(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Parse JSON from a model or OCR service reply.

    Handles:
    - Markdown code blocks (```json ... ```), anywhere in the reply
    - Leading/trailing whitespace and prose around the payload
    - Trailing data after the first complete JSON value

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON object or None if parsing fails
    """
    if not text:
        return None

    cleaned_text = _CODE_FENCE.sub("", text).strip()

    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, attempting recovery...")

    # Decode the first complete object or array in the text
    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", cleaned_text):
        try:
            value, _ = decoder.raw_decode(cleaned_text, match.start())
            LOGGER.info(f"Recovered JSON value at position {match.start()}")
            return value
        except json.JSONDecodeError:
            continue

    LOGGER.error("Failed to parse JSON from reply")
    return None
