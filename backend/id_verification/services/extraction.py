"""Field extraction from raw ID card OCR text.

Best-effort heuristics, not a strict parser: each field is mined
independently and the first match wins. A field that does not match is
simply left unset.
"""

import re
from typing import Optional
from dataclasses import dataclass, asdict
import logging

logger = logging.getLogger(__name__)


# Two to four capitalized words ("Juan Dela Cruz")
NAME_PATTERN = re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})")

# D/M/YYYY or M/D/YYYY, "/" or "-" separators; day/month order is not resolved
BIRTHDATE_PATTERN = re.compile(r"\b(\d{1,2}[/\-]\d{1,2}[/\-]\d{4})\b")

# 2-3, 3-4, 3-4 digit groups, optionally hyphen or space separated ("123-4567-890")
ID_NUMBER_PATTERN = re.compile(r"(\d{2,3}[\- ]?\d{3,4}[\- ]?\d{3,4})")


@dataclass(frozen=True)
class ExtractedFields:
    """Candidate fields mined from OCR text. Any of them may be absent."""
    name: Optional[str] = None
    birthdate: Optional[str] = None
    id_number: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _first_match(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1).strip() if match else None


class FieldExtractor:
    """Mines name, birthdate and ID number from unstructured text."""

    def extract(self, text: Optional[str]) -> ExtractedFields:
        """
        Extract candidate fields from OCR text.

        Never raises; text with no recognizable fields yields an
        ExtractedFields with every field set to None.
        """
        if not text:
            return ExtractedFields()

        name = _first_match(NAME_PATTERN, text)
        if name:
            # A name wrapped over two lines reads as one
            name = " ".join(name.split())

        fields = ExtractedFields(
            name=name,
            birthdate=_first_match(BIRTHDATE_PATTERN, text),
            id_number=_first_match(ID_NUMBER_PATTERN, text),
        )
        logger.debug(
            f"Extracted fields: name={'yes' if fields.name else 'no'}, "
            f"birthdate={'yes' if fields.birthdate else 'no'}, "
            f"id_number={'yes' if fields.id_number else 'no'}"
        )
        return fields
