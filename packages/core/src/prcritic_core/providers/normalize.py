"""Turn raw model output into a ReviewResponse.

Models wrap JSON in markdown fences, leave trailing commas, or stop mid-object
when they run out of tokens. Unwrapping is narrow (only the known
fence openers are stripped). The rest is handed to json-repair before strict
parsing. Anything that still fails becomes a ParseFailure; this module never
raises.
"""

from __future__ import annotations

import json
import logging

from json_repair import repair_json

from prcritic_core.models import LineComment, ParseFailure, ReviewResponse, ReviewResult, SuggestedAction

logger = logging.getLogger(__name__)

# Checked in order; the first match wins.
KNOWN_PREFIXES = ("```json", "```JSON")
CLOSING_MARKER = "```"


def clean_json_response(text: str) -> str:
    """Strip a known code-fence wrapper, or return ``text`` untouched.

    Text that does not end with the closing fence is assumed unwrapped. Text
    that ends with it but opens with an unknown marker is left alone too.
    """
    if not text.endswith(CLOSING_MARKER):
        return text
    for prefix in KNOWN_PREFIXES:
        if text.startswith(prefix):
            if len(text) < len(prefix) + len(CLOSING_MARKER):
                return text
            return text[len(prefix) : len(text) - len(CLOSING_MARKER)].strip()
    return text


def _to_line_comment(item) -> LineComment:
    if not isinstance(item, dict):
        raise ValueError(f"comment must be an object, got {type(item).__name__}")
    # A missing or null line means the comment is not tied to a line (0).
    line = item.get("line")
    return LineComment(
        path=item.get("path") or "",
        line=int(line) if line not in (None, "") else 0,
        comment=item.get("comment") or "",
    )


def parse_review_json(text: str) -> ReviewResponse:
    """Strict mapping of repaired JSON onto ReviewResponse; raises on bad shape."""
    content = json.loads(repair_json(clean_json_response(text)))
    if not isinstance(content, dict):
        raise ValueError(f"expected a JSON object, got {type(content).__name__}")
    return ReviewResponse(
        summary=content["summary"],
        line_comments=[_to_line_comment(c) for c in content.get("comments") or []],
        suggested_action=SuggestedAction.parse(content.get("suggestedAction", SuggestedAction.COMMENT)),
        confidence=content.get("confidence", 0),
    )


def normalize_response(text: str) -> ReviewResult:
    try:
        return parse_review_json(text)
    except Exception as e:
        logger.error("Failed to parse AI response: %s", e)
        logger.debug("Unparsable AI response: %s", (text or "")[:500])
        return ParseFailure(reason=str(e), raw_text=text or "")
