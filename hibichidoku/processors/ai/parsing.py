"""Extract-then-validate parsing of LLM JSON output.

Model output is untrusted text: it may be wrapped in Markdown code fences or
surrounded by prose. Parsing happens in two explicit steps, each with its own
error type, so callers can tell "the model gave no JSON" apart from "the JSON
has the wrong shape".
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class LLMOutputError(ValueError):
    """Base class for unusable LLM output."""


class NoJsonFoundError(LLMOutputError):
    """The response contained no parsable JSON value of the expected kind."""


class SchemaMismatchError(LLMOutputError):
    """JSON was found but does not match the expected schema."""


_FENCE_RE = re.compile(r"```(?:json|JSON)?")
_OPENERS = {"object": "{", "array": "["}
_DECODER = json.JSONDecoder()


class EnrichmentPayload(BaseModel):
    """Fields the enrichment prompt asks for; every key is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title_ja: Optional[str] = Field(default=None, alias="titleJa")
    summary_ja: Optional[str] = Field(default=None, alias="summaryJa")
    explanation_ja: Optional[str] = Field(default=None, alias="explanationJa")
    translation_ja: Optional[str] = Field(default=None, alias="translationJa")
    insight_ja: Optional[str] = Field(default=None, alias="insightJa")
    recommended_books: Optional[List[str]] = Field(default=None, alias="recommendedBooks")
    tags: Optional[List[str]] = None
    visual_suggestions: Optional[List[str]] = Field(default=None, alias="visualSuggestions")


class DialogueTurn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    speaker: str
    text: str


_DIALOGUE = TypeAdapter(List[DialogueTurn])


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def extract_json(raw: str, *, kind: Literal["object", "array"] = "object") -> Any:
    """Return the first JSON value of ``kind`` found in ``raw``.

    The whole (fence-stripped) text is tried first. Otherwise decoding starts
    at each opening bracket in turn, so prose on either side of the value
    (brackets included) is ignored.
    """
    text = strip_code_fences(raw)
    if not text:
        raise NoJsonFoundError("Empty LLM response")

    expected = dict if kind == "object" else list
    try:
        value = json.loads(text)
        if isinstance(value, expected):
            return value
    except json.JSONDecodeError:
        pass

    opener = _OPENERS[kind]
    last_error: Optional[json.JSONDecodeError] = None
    idx = text.find(opener)
    while idx != -1:
        try:
            value, _ = _DECODER.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            last_error = exc
        else:
            if isinstance(value, expected):
                return value
        idx = text.find(opener, idx + 1)

    if last_error is not None:
        raise NoJsonFoundError(f"Unparsable JSON {kind} in LLM response: {last_error}") from last_error
    raise NoJsonFoundError(f"No JSON {kind} found in LLM response")


def parse_enrichment(raw: str) -> EnrichmentPayload:
    data = extract_json(raw, kind="object")
    try:
        return EnrichmentPayload.model_validate(data)
    except ValidationError as exc:
        raise SchemaMismatchError(f"Enrichment JSON does not match schema: {exc}") from exc


def parse_dialogue(raw: str) -> List[DialogueTurn]:
    data = extract_json(raw, kind="array")
    try:
        return _DIALOGUE.validate_python(data)
    except ValidationError as exc:
        raise SchemaMismatchError(f"Dialogue JSON does not match schema: {exc}") from exc
