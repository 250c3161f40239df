import pytest
from django.core.cache import cache

from crm.models import Role

from .factories import client_for, make_patient, make_user


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin_user(db):
    return make_user(Role.ADMIN)


@pytest.fixture
def patient_user(db):
    # save() links a placeholder patient record
    return make_user(Role.PATIENT)


@pytest.fixture
def patient_record(db):
    return make_patient()


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def patient_client(patient_user):
    return client_for(patient_user)
