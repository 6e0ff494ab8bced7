"""Shared helpers for Gemini responses: text, JSON, inline data and grounding."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from chefgenius.models.shopping import GroundingCitation

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes adds despite instructions."""
    t = (text or "").strip()
    t = re.sub(r"^```(?:json)?\s*", "", t, flags=re.IGNORECASE | re.MULTILINE)
    t = re.sub(r"\s*```\s*$", "", t, flags=re.MULTILINE)
    return t.strip()


def _iter_parts(response: Any) -> Iterator[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        yield part


def get_response_text(response: Any) -> str:
    """
    Robust extraction of text from google-genai responses.

    Tries ``response.text`` first, then the text parts of the first candidate.
    """
    try:
        t = getattr(response, "text", None)
        if isinstance(t, str) and t.strip():
            return t
    except ValueError:
        # Older SDKs raise when the response holds no text parts
        pass

    texts = [p.text for p in _iter_parts(response) if isinstance(getattr(p, "text", None), str)]
    return "".join(texts)


def get_inline_data(response: Any) -> Optional[Tuple[bytes, str]]:
    """Return ``(data, mime_type)`` of the first inline-data part, if any."""
    for part in _iter_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return inline.data, getattr(inline, "mime_type", None) or "application/octet-stream"
    return None


def get_grounding_citations(response: Any) -> List[GroundingCitation]:
    """Web sources from Google Search grounding, in the order they were returned."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations: List[GroundingCitation] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if uri:
            citations.append(GroundingCitation(uri=uri, title=getattr(web, "title", None)))
    return citations


def response_debug_summary(response: Any) -> Dict[str, Any]:
    """
    Safe, compact debug info (no huge dumps).
    Helps explain "HTTP 200 but empty text".
    """
    out: Dict[str, Any] = {}
    candidates = getattr(response, "candidates", None) or []
    out["candidates"] = len(candidates)
    if candidates:
        c0 = candidates[0]
        out["finish_reason"] = getattr(c0, "finish_reason", None)
        out["safety_ratings"] = getattr(c0, "safety_ratings", None)
        out["parts"] = sum(1 for _ in _iter_parts(response))
    return out


def log_empty_response(prefix: str, response: Any) -> None:
    summary = response_debug_summary(response)
    logger.warning(f"{prefix} empty response text. summary={summary}")


def clean_schema_for_gemini(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Clean Pydantic JSON schema for Gemini responseSchema format.
    - Resolves $ref references to their definitions (Gemini doesn't support $ref)
    - Removes 'additionalProperties' and Pydantic metadata (title, examples, $defs)
    - Handles anyOf for Optional fields (extracts the non-null type)
    - Keeps 'description' on properties, since Gemini uses it as a hint
    """
    defs = schema.get("$defs", {})

    def clean(s: Any) -> Any:
        if not isinstance(s, dict):
            return s

        if "$ref" in s:
            ref = s["$ref"]
            return clean(defs.get(ref.rsplit("/", 1)[-1], {}))

        result: Dict[str, Any] = {}
        for key, value in s.items():
            if key in ("additionalProperties", "title", "examples", "$defs", "default"):
                continue
            if key == "properties" and isinstance(value, dict):
                result[key] = {name: clean(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                result[key] = clean(value)
            elif isinstance(value, list):
                result[key] = [clean(item) for item in value]
            else:
                result[key] = value

        # Older Pydantic wraps a described $ref as allOf: [{$ref}]
        if "allOf" in result and len(result["allOf"]) == 1:
            result.update(result.pop("allOf")[0])

        if "anyOf" in result:
            any_of = result.pop("anyOf")
            for option in any_of:
                if isinstance(option, dict) and option.get("type") != "null":
                    result.update(option)
                    break

        return result

    return clean(schema)
