"""Response schemas for MCP tool responses.

Dict-based type schemas for the payloads built by puzzlegen.payloads,
checked by validate_response() when PUZZLEGEN_VALIDATE=1. The server
itself never imports this module; the tests use it to check the shape
of every tool response.
"""

from __future__ import annotations

import os


# ---------------------------------------------------------------------------
# Validation schemas (dict-based)
# ---------------------------------------------------------------------------

PUZZLE_SCHEMA = {
    "id": int,
    "fen": str,
    "blunderMove": str,
    "correctMoves": list,
    "side": str,
    "moveNumber": int,
    "difficulty": str,
    "description": str,
    "blunderType": str,
    "centipawnLoss": int,
}

PUZZLE_REPORT_SCHEMA = {
    "puzzlesGenerated": int,
    "puzzles": list,
}

GAME_ANALYSIS_SCHEMA = {
    "totalMoves": int,
    "mistakesFound": int,
    "mistakes": list,
}

EVALUATION_SCHEMA = {
    "fen": str,
    "depth": int,
    "score_cp": int,
}

ERROR_SCHEMA = {
    "error": str,
    "type": str,
}


def _type_errors(obj: dict, schema: dict) -> list[str]:
    errors = []
    for key, expected_types in schema.items():
        if key not in obj:
            errors.append(f"Missing key: {key}")
            continue
        value = obj[key]
        if not isinstance(value, expected_types):
            if isinstance(expected_types, tuple):
                expected = "(" + ", ".join(t.__name__ for t in expected_types) + ")"
            else:
                expected = expected_types.__name__
            errors.append(f"Key '{key}': expected {expected}, got {type(value).__name__}")
    return errors


def validate_response(
    response: dict,
    schema: dict,
    item_schemas: dict[str, dict] | None = None,
) -> list[str]:
    """Validate a response dict against a schema.

    Only runs when PUZZLEGEN_VALIDATE=1 env var is set.

    Args:
        response: Response dict to validate.
        schema: Dict mapping key names to expected types (or tuple of types).
        item_schemas: Optional schemas for the elements of list-valued
            keys, e.g. {"puzzles": PUZZLE_SCHEMA}.

    Returns:
        List of validation error strings (empty = valid).
    """
    if os.environ.get("PUZZLEGEN_VALIDATE") != "1":
        return []

    if not isinstance(response, dict):
        return [f"Response is not a dict: {type(response).__name__}"]

    errors = _type_errors(response, schema)
    for key, item_schema in (item_schemas or {}).items():
        items = response.get(key)
        if not isinstance(items, list):
            continue
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                errors.append(f"{key}[{i}]: not a dict")
                continue
            errors.extend(f"{key}[{i}]: {e}" for e in _type_errors(item, item_schema))
    return errors
