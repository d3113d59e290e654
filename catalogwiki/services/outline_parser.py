"""Parse model output into a validated Outline.

Two steps, each with its own error kind:

1. Shape: the text must be JSON matching ``Outline`` -> ParseError.
2. Structure: at least one top-level node, and children may not nest
   further -> ValidationError.

No retry happens here; callers decide whether to ask the model again.
"""

import dataclasses
import json
import logging
from typing import Optional

from pydantic import ValidationError as SchemaError

from ..exceptions import CatalogueWikiError, ErrorCode, ParseError, ValidationError
from ..schemas.outline import Outline

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class OutlineParseResult:
    """Outcome of try_parse_outline(): either an outline or an error kind."""
    outline: Optional[Outline] = None
    error_code: Optional[ErrorCode] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outline is not None


def parse_outline(raw: str) -> Outline:
    """Parse and validate *raw* structured text.

    Raises:
        ParseError: not JSON, or JSON not shaped like an outline.
        ValidationError: zero top-level nodes, or nesting deeper than one level.
    """
    if raw is None or not raw.strip():
        raise ParseError("Outline is empty: no structured data in model output")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Outline is not valid JSON: %s", e)
        raise ParseError("Outline is not valid JSON", original_error=e) from e

    try:
        outline = Outline.model_validate(data)
    except SchemaError as e:
        logger.error("Outline JSON has the wrong shape: %s", e)
        raise ParseError("Outline JSON does not match the expected structure", original_error=e) from e

    _validate_structure(outline)
    logger.info(
        "Parsed outline: %d sections, %d subsections",
        len(outline.items), outline.child_count,
    )
    return outline


def try_parse_outline(raw: str) -> OutlineParseResult:
    """Like parse_outline(), but reports failures as a value."""
    try:
        return OutlineParseResult(outline=parse_outline(raw))
    except CatalogueWikiError as e:
        return OutlineParseResult(error_code=e.error_code, message=e.message)


def _validate_structure(outline: Outline) -> None:
    if not outline.items:
        raise ValidationError("Outline has no sections", field="items")

    for item in outline.items:
        for child in item.children:
            if child.children:
                raise ValidationError(
                    f"Section '{item.name}/{child.name}' nests deeper than one level",
                    field="children",
                )
