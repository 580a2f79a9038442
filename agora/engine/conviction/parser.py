"""Tolerant parsing of conviction evaluation responses."""

import json
import logging
import math
import re

from .exceptions import EvaluationParseError
from .types import RawEvaluation

logger = logging.getLogger(__name__)

MISSING_REASONING = "Unable to extract reasoning."
MISSING_NOTES = "Unable to extract."
DEFAULT_EFFECTIVENESS = 50.0

_NUMBER = r"(-?\d+(?:\.\d+)?)"


def repair_json(json_text: str) -> str:
    """Attempt to repair common JSON issues from small models."""
    repaired = json_text.strip()

    # Trailing commas before closing braces/brackets
    repaired = re.sub(r",(\s*[}\]])", r"\1", repaired)

    # Unquoted keys
    repaired = re.sub(
        r"([{,]\s*)([a-zA-Z_][a-zA-Z0-9_]*)\s*:", r'\1"\2":', repaired
    )

    # Explicit plus signs are not valid JSON numbers
    repaired = re.sub(r":\s*\+(\d)", r": \1", repaired)

    if repaired.startswith("{") and not repaired.endswith("}"):
        logger.warning("JSON appears truncated, attempting to complete it")

        open_quotes = repaired.count('"') - repaired.count('\\"')
        if open_quotes % 2 == 1:
            repaired += '"'

        repaired = repaired.rstrip().rstrip(",")

        open_braces = repaired.count("{") - repaired.count("}")
        open_brackets = repaired.count("[") - repaired.count("]")
        repaired += "]" * open_brackets
        repaired += "}" * open_braces

    last_brace = repaired.rfind("}")
    if last_brace != -1:
        repaired = repaired[: last_brace + 1]

    if repaired != json_text:
        logger.debug(f"Repaired JSON text for parsing: {repaired}")

    return repaired


def extract_json_text(response: str) -> str:
    markdown_match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", response, re.DOTALL)
    if markdown_match:
        return markdown_match.group(1)

    json_match = re.search(r"\{.*\}", response, re.DOTALL)
    if json_match:
        return json_match.group()

    # Possibly truncated before the closing brace
    start = response.find("{")
    if start != -1:
        return response[start:]
    return response.strip()


def _is_finite_number(value: object) -> bool:
    # json.loads accepts NaN and Infinity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _from_json(data: object) -> RawEvaluation | None:
    if not isinstance(data, dict):
        return None

    delta = data.get("delta")
    reasoning = data.get("reasoning")
    effectiveness = data.get("strategyEffectiveness", data.get("strategy_effectiveness"))
    notes = data.get("vulnerabilityNotes", data.get("vulnerability_notes", MISSING_NOTES))

    if not _is_finite_number(delta) or not _is_finite_number(effectiveness):
        return None
    if not isinstance(reasoning, str):
        return None

    return RawEvaluation(
        delta=float(delta),
        reasoning=reasoning,
        vulnerability_notes=notes if isinstance(notes, str) else str(notes),
        strategy_effectiveness=float(effectiveness),
    )


def _from_patterns(response: str) -> RawEvaluation | None:
    delta_match = re.search(rf'"?delta"?\s*:\s*\+?{_NUMBER}', response)
    if not delta_match:
        return None

    reasoning_match = re.search(r'"?reasoning"?\s*:\s*"([^"]+)"', response)
    notes_match = re.search(r'"?vulnerabilityNotes"?\s*:\s*"([^"]+)"', response)
    effectiveness_match = re.search(rf'"?strategyEffectiveness"?\s*:\s*{_NUMBER}', response)

    return RawEvaluation(
        delta=float(delta_match.group(1)),
        reasoning=reasoning_match.group(1) if reasoning_match else MISSING_REASONING,
        vulnerability_notes=notes_match.group(1) if notes_match else MISSING_NOTES,
        strategy_effectiveness=(
            float(effectiveness_match.group(1)) if effectiveness_match else DEFAULT_EFFECTIVENESS
        ),
    )


def parse_evaluation_response(response: str) -> RawEvaluation:
    """Turn an evaluation reply into a RawEvaluation.

    Accepts code-fenced or lightly malformed JSON and falls back to pulling
    individual fields out with regular expressions. Raises
    EvaluationParseError when not even a delta can be found.
    """
    json_text = extract_json_text(response)
    for candidate in (json_text, repair_json(json_text)):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"Evaluation JSON did not parse: {e}")
            continue
        parsed = _from_json(data)
        if parsed is not None:
            return parsed
        logger.debug("Evaluation JSON missing required fields")
        break

    extracted = _from_patterns(response)
    if extracted is not None:
        logger.warning("Recovered evaluation fields by pattern extraction")
        return extracted

    raise EvaluationParseError("Could not parse evaluation response", raw_response=response)
