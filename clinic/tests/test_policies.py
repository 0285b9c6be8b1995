"""
Unit tests for the declarative authorization policy.
"""
from types import SimpleNamespace

import pytest

from clinic_workflow.exceptions import AuthorizationError

from clinic.policies import (
    ALL_ROLES,
    CHECKUP,
    DIAGNOSIS,
    INSERT,
    PATIENT,
    POLICY_TABLE,
    PRESCRIPTION,
    SELECT,
    UPDATE,
    authorize,
    is_allowed,
)


class TestIsAllowed:
    """Pure predicate over the policy table."""

    def test_every_role_can_read_every_table(self):
        for (table, operation), roles in POLICY_TABLE.items():
            if operation == SELECT:
                assert roles == ALL_ROLES, table

    def test_patient_insert_roles(self):
        assert is_allowed("operations", PATIENT, INSERT)
        assert is_allowed("doctor", PATIENT, INSERT)
        assert not is_allowed("pharmacist", PATIENT, INSERT)

    def test_checkup_insert_roles(self):
        assert is_allowed("operations", CHECKUP, INSERT)
        assert not is_allowed("pharmacist", CHECKUP, INSERT)

    def test_diagnosis_and_prescription_are_doctor_only(self):
        for table in (DIAGNOSIS, PRESCRIPTION):
            assert is_allowed("doctor", table, INSERT)
            assert not is_allowed("operations", table, INSERT)
            assert not is_allowed("pharmacist", table, INSERT)

    def test_only_pharmacist_updates_prescriptions(self):
        assert is_allowed("pharmacist", PRESCRIPTION, UPDATE)
        assert not is_allowed("doctor", PRESCRIPTION, UPDATE)

    def test_unlisted_operation_is_denied(self):
        assert not is_allowed("doctor", PATIENT, UPDATE)
        assert not is_allowed("doctor", DIAGNOSIS, "delete")

    def test_missing_role_is_denied(self):
        assert not is_allowed(None, PATIENT, SELECT)
        assert not is_allowed("", PATIENT, SELECT)
        assert not is_allowed("admin", PATIENT, SELECT)


class TestAuthorize:
    """authorize raises AuthorizationError with detail."""

    def test_allowed_returns_none(self):
        assert authorize(SimpleNamespace(id="a", role="doctor"), DIAGNOSIS, INSERT) is None

    def test_denied_raises_with_detail(self):
        actor = SimpleNamespace(id="a", role="operations")
        with pytest.raises(AuthorizationError) as exc_info:
            authorize(actor, DIAGNOSIS, INSERT)
        err = exc_info.value
        assert err.code == "PERMISSION_DENIED"
        assert err.http_status == 403
        assert err.detail["table"] == DIAGNOSIS
        assert err.detail["role"] == "operations"
        assert err.detail["allowed_roles"] == ["doctor"]

    def test_actor_without_role_raises(self):
        with pytest.raises(AuthorizationError):
            authorize(object(), PATIENT, SELECT)
