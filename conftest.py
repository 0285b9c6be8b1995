"""
Pytest configuration and shared fixtures.
"""
import uuid

import pytest
from django.contrib.auth import get_user_model
from django.test import Client

from clinic import services
from clinic.models import Profile


@pytest.fixture
def operations_actor(db):
    """Front-desk actor."""
    return Profile.objects.create(role="operations")


@pytest.fixture
def doctor_actor(db):
    return Profile.objects.create(role="doctor")


@pytest.fixture
def pharmacist_actor(db):
    return Profile.objects.create(role="pharmacist")


@pytest.fixture
def sample_patient_data():
    """Sample patient data for tests."""
    return {
        "name": "Asha Rao",
        "gender": "female",
        "age": 34,
    }


@pytest.fixture
def registered_patient(operations_actor, sample_patient_data):
    return services.create_patient(actor_id=operations_actor.id, **sample_patient_data)


@pytest.fixture
def checkup(registered_patient, operations_actor):
    return services.create_checkup(registered_patient.id, "fever, headache", operations_actor.id)


@pytest.fixture
def diagnosis(checkup, doctor_actor):
    return services.create_diagnosis(checkup.id, "viral infection", doctor_actor.id)


@pytest.fixture
def prescription(diagnosis, doctor_actor):
    return services.create_prescription(diagnosis.id, "paracetamol 500mg", doctor_actor.id)


@pytest.fixture
def client_for(db):
    """Factory: logged-in django.test.Client plus the Profile behind it."""
    def _make(role):
        user = get_user_model().objects.create_user(
            username=f"{role}_{uuid.uuid4().hex[:8]}",
            password="test-pass",
        )
        profile = Profile.objects.create(user=user, role=role)
        client = Client()
        client.force_login(user)
        return client, profile
    return _make
