"""Tests for the TISS schema validator."""

from datetime import date

import pytest

from glosa_engine.schemas import FindingSeverity, GuideType
from glosa_engine.validation import schema_validator as sv
from glosa_engine.validation.schema_validator import (
    REQUIRED_FIELDS,
    SchemaValidator,
    ValidatorConfig,
    validate_guide,
)


def codes(findings):
    return [f.code for f in findings]


def finding_for(findings, code):
    return next(f for f in findings if f.code == code)


class TestValidGuides:
    def test_complete_consultation_is_valid(self, consultation_guide):
        result = validate_guide(consultation_guide, "CONSULTA")
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_complete_sadt_is_valid(self, sadt_guide):
        result = validate_guide(sadt_guide, GuideType.ANCILLARY_SERVICE)
        assert result.valid is True
        assert result.errors == []

    def test_non_mapping_guide_does_not_raise(self):
        result = validate_guide(None)
        assert result.valid is False
        assert set(codes(result.errors)) == {sv.MISSING_REQUIRED_FIELD}


class TestRequiredFields:
    def test_missing_field_is_error(self, consultation_guide):
        del consultation_guide["nomeBeneficiario"]
        result = validate_guide(consultation_guide, "CONSULTA")

        assert result.valid is False
        finding = finding_for(result.errors, sv.MISSING_REQUIRED_FIELD)
        assert finding.field == "nomeBeneficiario"
        assert finding.severity == FindingSeverity.ERROR
        assert "nomeBeneficiario" in finding.message

    @pytest.mark.parametrize("blank", [None, "", "   ", [], {}])
    def test_blank_values_count_as_missing(self, consultation_guide, blank):
        consultation_guide["nomeBeneficiario"] = blank
        result = validate_guide(consultation_guide, "CONSULTA")
        assert codes(result.errors) == [sv.MISSING_REQUIRED_FIELD]

    def test_zero_is_present_but_invalid_value(self, consultation_guide):
        consultation_guide["valorProcedimento"] = 0
        result = validate_guide(consultation_guide, "CONSULTA")
        assert sv.MISSING_REQUIRED_FIELD not in codes(result.errors)
        assert sv.INVALID_VALUE in codes(result.errors)

    def test_required_set_depends_on_type(self, consultation_guide):
        """A consultation checked as INTERNACAO misses the hospitalization fields."""
        result = validate_guide(consultation_guide, "INTERNACAO")
        missing = {f.field for f in result.errors if f.code == sv.MISSING_REQUIRED_FIELD}
        assert missing == {"numeroGuia", "dataInternacao", "tipoAcomodacao", "diariasAutorizadas"}

    def test_unknown_type_falls_back_to_consultation(self, consultation_guide):
        result = validate_guide(consultation_guide, "NOT_A_TYPE")
        assert result.valid is True

    def test_guide_type_accepts_enum_name(self):
        validator = SchemaValidator()
        assert validator.required_fields("prior_authorization_request") == REQUIRED_FIELDS[
            GuideType.PRIOR_AUTHORIZATION_REQUEST
        ]

    def test_default_guide_type_is_configurable(self, sadt_guide):
        validator = SchemaValidator(ValidatorConfig(default_guide_type=GuideType.ANCILLARY_SERVICE))
        assert validator.validate(sadt_guide).valid is True


class TestFieldFormats:
    def test_guide_number_longer_than_20_is_error(self, consultation_guide):
        consultation_guide["numeroGuiaPrestador"] = "1" * 21
        result = validate_guide(consultation_guide)
        finding = finding_for(result.errors, sv.INVALID_FORMAT)
        assert finding.field == "numeroGuiaPrestador"

    def test_guide_number_of_20_is_ok(self, consultation_guide):
        consultation_guide["numeroGuiaPrestador"] = "1" * 20
        assert validate_guide(consultation_guide).valid is True

    def test_alternate_guide_number_is_checked(self, consultation_guide):
        consultation_guide["numeroGuia"] = "X" * 25
        result = validate_guide(consultation_guide)
        assert finding_for(result.errors, sv.INVALID_FORMAT).field == "numeroGuia"

    def test_dashed_card_with_enough_digits_passes(self, consultation_guide):
        consultation_guide["numeroCarteira"] = "1234-5678-9012-3456-7"
        result = validate_guide(consultation_guide)
        assert sv.INVALID_CARD_NUMBER not in codes(result.errors)

    @pytest.mark.parametrize("card", ["123456789012345", "1234-5678-9012-345", "1" * 21])
    def test_card_outside_digit_range_fails(self, consultation_guide, card):
        consultation_guide["numeroCarteira"] = card
        result = validate_guide(consultation_guide)
        assert finding_for(result.errors, sv.INVALID_CARD_NUMBER).field == "numeroCarteira"

    def test_undotted_cid_is_warning(self, consultation_guide):
        consultation_guide["codigoCID"] = "J069"
        result = validate_guide(consultation_guide)
        assert result.valid is True
        finding = finding_for(result.warnings, sv.INVALID_CID_FORMAT)
        assert finding.severity == FindingSeverity.WARNING
        assert "J069" in finding.message

    @pytest.mark.parametrize("cid", ["J06", "J06.9", "S52.01"])
    def test_valid_cid_patterns(self, consultation_guide, cid):
        consultation_guide["codigoCID"] = cid
        assert validate_guide(consultation_guide).warnings == []

    def test_procedure_code_must_have_8_digits(self, consultation_guide):
        consultation_guide["codigoProcedimento"] = "1010101"
        result = validate_guide(consultation_guide)
        assert codes(result.warnings) == [sv.INVALID_PROCEDURE_CODE]

    def test_procedure_code_digits_ignore_punctuation(self, consultation_guide):
        consultation_guide["codigoProcedimento"] = "1.01.01.012"
        assert validate_guide(consultation_guide).warnings == []

    def test_invalid_crm_is_warning(self, consultation_guide):
        consultation_guide["numeroConselhoExecutante"] = "CRM-123"
        result = validate_guide(consultation_guide)
        assert result.valid is True
        assert codes(result.warnings) == [sv.INVALID_CRM_FORMAT]


class TestServiceDates:
    def test_future_date_is_error(self, consultation_guide, future_date):
        consultation_guide["dataAtendimento"] = future_date
        result = validate_guide(consultation_guide)
        assert result.valid is False
        assert finding_for(result.errors, sv.FUTURE_DATE).field == "dataAtendimento"

    def test_future_date_is_error_regardless_of_other_fields(self, future_date):
        result = validate_guide({"dataAtendimento": future_date, "numeroCarteira": "x"})
        assert sv.FUTURE_DATE in codes(result.errors)

    def test_old_date_is_warning(self, consultation_guide, old_date):
        consultation_guide["dataAtendimento"] = old_date
        result = validate_guide(consultation_guide)
        assert result.valid is True
        assert codes(result.warnings) == [sv.OLD_DATE]

    def test_unparseable_date_is_error(self, consultation_guide):
        consultation_guide["dataAtendimento"] = "yesterday"
        result = validate_guide(consultation_guide)
        assert codes(result.errors) == [sv.INVALID_DATE]

    def test_brazilian_date_format(self, consultation_guide):
        validator = SchemaValidator(today=lambda: date(2026, 3, 20))
        consultation_guide["dataAtendimento"] = "15/03/2026"
        assert validator.validate(consultation_guide).valid is True

    def test_injected_clock(self, consultation_guide):
        validator = SchemaValidator(today=lambda: date(2026, 3, 20))
        consultation_guide["dataAtendimento"] = "2026-03-21"
        assert codes(validator.validate(consultation_guide).errors) == [sv.FUTURE_DATE]

    def test_execution_date_is_checked(self, sadt_guide, future_date):
        sadt_guide["dataRealizacao"] = future_date
        result = validate_guide(sadt_guide, "SADT")
        assert finding_for(result.errors, sv.FUTURE_DATE).field == "dataRealizacao"


class TestMonetaryValues:
    @pytest.mark.parametrize("value", [-10, "abc", "", 0.0])
    def test_non_positive_or_non_numeric_is_error(self, consultation_guide, value):
        consultation_guide["valorProcedimento"] = value
        result = validate_guide(consultation_guide)
        assert sv.INVALID_VALUE in codes(result.errors)

    def test_brazilian_formatted_value(self, consultation_guide):
        consultation_guide["valorProcedimento"] = "R$ 1.234,56"
        assert validate_guide(consultation_guide).valid is True

    def test_high_value_is_warning(self, consultation_guide):
        consultation_guide["valorProcedimento"] = 15000
        result = validate_guide(consultation_guide)
        assert result.valid is True
        finding = finding_for(result.warnings, sv.HIGH_VALUE)
        assert "15,000.00" in finding.message

    def test_threshold_is_configurable(self, consultation_guide):
        validator = SchemaValidator(ValidatorConfig(high_value_threshold=100.0))
        result = validator.validate(consultation_guide)
        assert codes(result.warnings) == [sv.HIGH_VALUE]

    def test_total_value_is_checked(self, sadt_guide):
        sadt_guide["valorTotal"] = -1
        result = validate_guide(sadt_guide, "SADT")
        assert finding_for(result.errors, sv.INVALID_VALUE).field == "valorTotal"


class TestValidatorConfig:
    def test_from_dict(self):
        config = ValidatorConfig.from_dict(
            {"high_value_threshold": "5000", "default_guide_type": "sadt"}
        )
        assert config.high_value_threshold == 5000.0
        assert config.default_guide_type == GuideType.ANCILLARY_SERVICE

    def test_from_empty_dict(self):
        config = ValidatorConfig.from_dict({})
        assert config.high_value_threshold == sv.DEFAULT_HIGH_VALUE_THRESHOLD
        assert config.default_guide_type == GuideType.CONSULTATION
