"""Tests for claim validation."""

import pytest
from id_verification.services.extraction import ExtractedFields
from id_verification.services.verification import (
    ClaimValidator,
    NAME_MISMATCH,
    NAME_NOT_FOUND,
    BIRTHDATE_NOT_FOUND,
    ID_NUMBER_NOT_FOUND,
)


@pytest.fixture
def validator():
    """Create validator instance."""
    return ClaimValidator()


def make_fields(
    name: str = "Juan Dela Cruz",
    birthdate: str = "01/15/1990",
    id_number: str = "123-4567-890",
) -> ExtractedFields:
    """Helper to create ExtractedFields for testing."""
    return ExtractedFields(name=name, birthdate=birthdate, id_number=id_number)


class TestNameCheck:
    """Test name comparison."""
    
    def test_exact_match(self, validator):
        outcome = validator.validate(make_fields(), "Juan Dela Cruz", "01/15/1990")
        assert outcome.is_valid is True
        assert outcome.errors == []
    
    def test_case_insensitive(self, validator):
        outcome = validator.validate(make_fields(name="Juan Dela Cruz"), "JUAN DELA CRUZ")
        assert outcome.is_valid is True
    
    def test_extracted_truncated(self, validator):
        """OCR dropped the last word: extracted is inside the claim."""
        outcome = validator.validate(make_fields(name="Juan Dela"), "Juan Dela Cruz")
        assert outcome.is_valid is True
    
    def test_extracted_extended(self, validator):
        """OCR picked up an extra word: claim is inside the extracted name."""
        outcome = validator.validate(make_fields(name="Juan Dela Cruz"), "Juan Dela")
        assert outcome.is_valid is True
    
    def test_mismatch(self, validator):
        outcome = validator.validate(make_fields(name="Maria Santos"), "Juan Dela Cruz")
        assert outcome.is_valid is False
        assert outcome.errors == [NAME_MISMATCH]
    
    def test_mismatch_other_direction(self, validator):
        outcome = validator.validate(make_fields(name="Juan Dela Cruz"), "Maria Santos")
        assert outcome.errors == [NAME_MISMATCH]
    
    def test_name_not_extracted(self, validator):
        outcome = validator.validate(make_fields(name=None), "Juan Dela Cruz")
        assert outcome.errors == [NAME_NOT_FOUND]
    
    @pytest.mark.parametrize("claimed", [None, ""])
    def test_claimed_name_missing(self, validator, claimed):
        """Without a claim there is nothing to match the card against."""
        outcome = validator.validate(make_fields(), claimed)
        assert outcome.errors == [NAME_NOT_FOUND]


class TestPresenceChecks:
    """Birthdate and ID number only need to be present."""
    
    def test_birthdate_missing(self, validator):
        outcome = validator.validate(make_fields(birthdate=None), "Juan Dela Cruz")
        assert outcome.is_valid is False
        assert outcome.errors == [BIRTHDATE_NOT_FOUND]
    
    def test_id_number_missing(self, validator):
        outcome = validator.validate(make_fields(id_number=None), "Juan Dela Cruz")
        assert outcome.errors == [ID_NUMBER_NOT_FOUND]
    
    def test_birthdate_not_compared_with_claim(self, validator):
        """Current policy: a different birthdate on the card still passes."""
        outcome = validator.validate(make_fields(birthdate="12/31/1975"), "Juan Dela Cruz", "01/15/1990")
        assert outcome.is_valid is True
    
    def test_id_number_format_not_checked(self, validator):
        outcome = validator.validate(make_fields(id_number="00 000 0000"), "Juan Dela Cruz")
        assert outcome.is_valid is True


class TestErrorOrdering:
    """Every failed check is reported, in check order."""
    
    def test_all_missing(self, validator):
        outcome = validator.validate(ExtractedFields(), "Juan Dela Cruz", "01/15/1990")
        
        assert outcome.is_valid is False
        assert outcome.errors == [NAME_NOT_FOUND, BIRTHDATE_NOT_FOUND, ID_NUMBER_NOT_FOUND]
    
    def test_mismatch_does_not_short_circuit(self, validator):
        fields = make_fields(name="Maria Santos", id_number=None)
        outcome = validator.validate(fields, "Juan Dela Cruz")
        
        assert outcome.errors == [NAME_MISMATCH, ID_NUMBER_NOT_FOUND]
    
    def test_error_strings(self):
        assert NAME_MISMATCH == "Name doesn't match"
        assert NAME_NOT_FOUND == "Name not found"
        assert BIRTHDATE_NOT_FOUND == "Birthdate not found"
        assert ID_NUMBER_NOT_FOUND == "ID number not found"
