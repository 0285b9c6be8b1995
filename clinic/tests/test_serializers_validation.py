"""
Unit tests for request validation and JSON parsing.
"""
import uuid
from decimal import Decimal

import pytest

from clinic_workflow.exceptions import ValidationError

from clinic.serializers import (
    VITAL_SIGNS_RANGES,
    parse_json_body,
    reject_unknown_fields,
    validate_checkup_data,
    validate_diagnosis_data,
    validate_patient_data,
    validate_prescription_data,
    validate_prescription_update,
    validate_vital_signs_data,
)


def _error_fields(exc_info):
    return [e["field"] for e in exc_info.value.detail["errors"]]


class TestValidatePatientData:
    """Tests for validate_patient_data."""

    def test_valid_data_is_trimmed(self):
        data = validate_patient_data({"name": "  Asha Rao ", "gender": "female", "age": 34})
        assert data == {"name": "Asha Rao", "gender": "female", "age": 34}

    def test_collects_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data({"name": "", "gender": "x", "age": 151})
        assert _error_fields(exc_info) == ["name", "gender", "age"]
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_status_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data({"name": "A", "gender": "other", "age": 1, "status": "registered"})
        assert _error_fields(exc_info) == ["status"]

    def test_non_dict_body(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(["name"])
        assert exc_info.value.code == "INVALID_REQUEST"


class TestValidateRecords:
    """Checkup, diagnosis and prescription payloads."""

    def test_checkup_optional_fields_default_blank(self):
        pid = uuid.uuid4()
        data = validate_checkup_data({"patient_id": pid, "checkup_description": "cough"})
        assert data["patient_id"] == str(pid)
        assert data["notes"] == ""

    def test_checkup_requires_patient_and_description(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_checkup_data({"checkup_description": " "})
        assert _error_fields(exc_info) == ["patient_id", "checkup_description"]

    def test_checkup_optional_must_be_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_checkup_data({"patient_id": str(uuid.uuid4()), "checkup_description": "x", "notes": 5})
        assert _error_fields(exc_info) == ["notes"]

    def test_diagnosis_bad_uuid(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_diagnosis_data({"checkup_id": "abc", "diagnosis_description": "flu"})
        assert _error_fields(exc_info) == ["checkup_id"]

    def test_prescription_rejects_fulfillment_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_prescription_data({
                "diagnosis_id": str(uuid.uuid4()),
                "prescription_details": "x",
                "fulfilled": True,
                "fulfilled_by": str(uuid.uuid4()),
            })
        assert _error_fields(exc_info) == ["fulfilled", "fulfilled_by"]

    def test_prescription_false_fulfilled_is_ignored(self):
        data = validate_prescription_data({
            "diagnosis_id": str(uuid.uuid4()),
            "prescription_details": "x",
            "fulfilled": False,
        })
        assert "fulfilled" not in data


class TestValidateVitalSigns:
    """Tests for validate_vital_signs_data."""

    def test_temperature_is_quantized(self):
        data = validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), "temperature": "37.04"})
        assert data["temperature"] == Decimal("37.0")

    @pytest.mark.parametrize("temperature", ["hot", "NaN", "Infinity", 1000])
    def test_bad_temperature(self, temperature):
        with pytest.raises(ValidationError) as exc_info:
            validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), "temperature": temperature})
        assert _error_fields(exc_info) == ["temperature"]

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), "heart_rate": True})
        assert _error_fields(exc_info) == ["heart_rate"]

    def test_oxygen_range(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), "oxygen_saturation": -1})
        assert _error_fields(exc_info) == ["oxygen_saturation"]

    @pytest.mark.parametrize("field", list(VITAL_SIGNS_RANGES))
    def test_integer_vitals_out_of_range(self, field):
        low, high = VITAL_SIGNS_RANGES[field]
        for value in (low - 1, high + 1, 10 ** 20):
            with pytest.raises(ValidationError) as exc_info:
                validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), field: value})
            assert _error_fields(exc_info) == [field]

    @pytest.mark.parametrize("field", list(VITAL_SIGNS_RANGES))
    def test_integer_vitals_bounds_accepted(self, field):
        low, high = VITAL_SIGNS_RANGES[field]
        for value in (low, high):
            data = validate_vital_signs_data({"checkup_id": str(uuid.uuid4()), field: value})
            assert data[field] == value


class TestRejectUnknownFields:
    """Tests for reject_unknown_fields."""

    def test_known_fields_pass(self):
        assert reject_unknown_fields({"heart_rate": 1}, ("heart_rate", "temperature")) is None

    def test_unknown_fields_listed_sorted(self):
        with pytest.raises(ValidationError) as exc_info:
            reject_unknown_fields({"pulse": 80, "actor_id": "x", "heart_rate": 1}, ("heart_rate",))
        assert _error_fields(exc_info) == ["actor_id", "pulse"]
        assert exc_info.value.code == "VALIDATION_ERROR"


class TestValidatePrescriptionUpdate:
    """Tests for validate_prescription_update."""

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            validate_prescription_update({})

    def test_fulfilled_must_be_bool(self):
        with pytest.raises(ValidationError):
            validate_prescription_update({"fulfilled": 1})

    def test_passes_through(self):
        changes = {"fulfilled": True, "dosage": "x"}
        assert validate_prescription_update(changes) == changes


class TestParseJsonBody:
    """Tests for parse_json_body."""

    def test_empty_body_is_empty_dict(self):
        assert parse_json_body(b"") == {}

    def test_invalid_json(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_body(b"{not json")
        assert exc_info.value.code == "INVALID_JSON"

    def test_array_body(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_body(b"[1, 2]")
        assert exc_info.value.code == "INVALID_REQUEST"
