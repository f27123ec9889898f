"""Cross-checks extracted ID fields against the identity a user claimed."""

from typing import Optional, List
from dataclasses import dataclass, field
import logging

from .extraction import ExtractedFields

logger = logging.getLogger(__name__)


NAME_MISMATCH = "Name doesn't match"
NAME_NOT_FOUND = "Name not found"
BIRTHDATE_NOT_FOUND = "Birthdate not found"
ID_NUMBER_NOT_FOUND = "ID number not found"


@dataclass
class ValidationOutcome:
    """Pass/fail verdict with human-readable reasons, in check order."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


class ClaimValidator:
    """
    Compares extracted fields against user-asserted claims.

    Every check runs so all applicable errors are reported. The birthdate and
    ID number checks only require the field to be present on the card; the
    claimed birthdate is not compared. Anything that fails here goes to a
    human reviewer, who does the strict comparison.
    """

    def validate(
        self,
        fields: ExtractedFields,
        claimed_full_name: Optional[str],
        claimed_birthdate: Optional[str] = None,
    ) -> ValidationOutcome:
        """
        Validate extracted fields.

        Args:
            fields: Fields mined from the OCR text
            claimed_full_name: Full name the user entered
            claimed_birthdate: Birthdate the user entered (currently unused)

        Returns:
            ValidationOutcome, valid iff no check failed
        """
        errors = []

        name_error = self._check_name(fields.name, claimed_full_name)
        if name_error:
            errors.append(name_error)

        if not fields.birthdate:
            errors.append(BIRTHDATE_NOT_FOUND)

        if not fields.id_number:
            errors.append(ID_NUMBER_NOT_FOUND)

        if errors:
            logger.info(f"Claim validation failed: {errors}")
        return ValidationOutcome(is_valid=not errors, errors=errors)

    def _check_name(self, extracted: Optional[str], claimed: Optional[str]) -> Optional[str]:
        """Substring match in either direction, case-insensitive (OCR may truncate or add words)."""
        if not extracted or not claimed:
            return NAME_NOT_FOUND

        extracted_lower = extracted.lower()
        claimed_lower = claimed.lower()
        if extracted_lower in claimed_lower or claimed_lower in extracted_lower:
            return None
        return NAME_MISMATCH
