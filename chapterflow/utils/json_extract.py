"""Extract the analysis JSON object from LLM output.

Models often wrap JSON in markdown code fences or add a sentence
before it. Extraction is strict about the result: anything that is
not a JSON object matching AnalysisOk becomes AnalysisParseFailure.
"""

import json
import re

from pydantic import ValidationError

from chapterflow.models.schemas import AnalysisOk, AnalysisOutcome, AnalysisParseFailure

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)


def find_balanced_object(text: str) -> str | None:
    """Return the first balanced {...} block in text, or None.

    String literals are tracked so braces inside values do not
    affect the depth count.
    """
    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start_idx, len(text)):
        c = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx : i + 1]

    return None  # Unbalanced braces


def extract_json_object(text: str) -> dict | None:
    """Extract a JSON object from an LLM response.

    Extraction order:
    1. Parse the whole (stripped) text
    2. Parse the body of the first ``` or ```json fence
    3. Parse the first balanced {...} block

    Returns:
        Parsed dict, or None if no JSON object could be found
    """
    if not text or not text.strip():
        return None

    candidates = [text.strip()]

    match = _FENCE_RE.search(text)
    if match:
        candidates.append(match.group(1).strip())

    balanced = find_balanced_object(text)
    if balanced:
        candidates.append(balanced)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    return None


def parse_analysis_response(text: str) -> AnalysisOutcome:
    """Parse an analysis-pass response into a tagged result.

    Args:
        text: Raw LLM response

    Returns:
        AnalysisOk with summary and new_glossary, or
        AnalysisParseFailure carrying the raw text and the reason

    Examples:
        >>> parse_analysis_response('{"summary": "s", "new_glossary": {}}').kind
        'ok'

        >>> parse_analysis_response("Sorry, I cannot help.").kind
        'parse_failure'
    """
    data = extract_json_object(text)
    if data is None:
        return AnalysisParseFailure(raw_text=text, reason="no JSON object found")

    try:
        return AnalysisOk.model_validate({**data, "kind": "ok"})
    except ValidationError as e:
        fields = ", ".join(".".join(map(str, err["loc"])) for err in e.errors())
        return AnalysisParseFailure(raw_text=text, reason=f"invalid fields: {fields}")


__all__ = ["find_balanced_object", "extract_json_object", "parse_analysis_response"]
