"""
Patient onboarding.

Both onboarding paths create the patient record first and then a
patient-role account linked to it.  The account gets a random password
and the welcome email lets the patient choose their own; the email is
sent only once the transaction has committed.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from crm.models import Patient, Role, Task, User
from crm.services.audit import log_action
from crm.services.notifications import send_welcome_email

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
EMAIL_TAKEN = 'An account with this email already exists.'


def _ensure_email_free(email: str) -> None:
    if User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exists():
        raise ValidationError({'email': [EMAIL_TAKEN]})


def _create_patient_user(patient: Patient) -> User:
    user = User(username=patient.email.lower()[:150], email=patient.email.lower(), role=Role.PATIENT)
    user.set_password(secrets.token_hex(32))
    user.skip_patient_creation = True
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        raise ValidationError({'email': [EMAIL_TAKEN]})
    patient.user = user
    patient.save(update_fields=['user', 'updated_at'])
    return user


def _schedule_welcome_email(patient: Patient, user: User) -> None:
    transaction.on_commit(lambda: send_welcome_email(patient, user))


@transaction.atomic
def create_patient(created_by: User, data: dict) -> tuple[Patient, User]:
    """Create a patient record on behalf of an administrator."""
    _ensure_email_free(data['email'])
    patient = Patient.objects.create(**data)
    user = _create_patient_user(patient)
    _schedule_welcome_email(patient, user)
    log_action(user=created_by, action='patient_create', object_type='patient', object_id=patient.pk)
    logger.info('patient created patient=%s by user=%s', patient.pk, created_by.pk)
    return patient, user


def _new_medical_record_number() -> str:
    while True:
        candidate = f"{secrets.randbelow(10 ** 9):09d}"
        if not Patient.objects.filter(medical_record_number=candidate).exists():
            return candidate


@transaction.atomic
def register_patient(data: dict) -> tuple[Patient, User]:
    """Public self-registration.

    Creates the record with a fresh medical record number, the linked
    account, and a follow-up task for the first administrator.
    """
    _ensure_email_free(data['email'])
    patient = Patient.objects.create(
        **data,
        medical_record_number=_new_medical_record_number(),
        status=Patient.Status.ACTIVE,
    )
    user = _create_patient_user(patient)
    _schedule_welcome_email(patient, user)
    create_applicant_task(patient)
    log_action(user=user, action='patient_register', object_type='patient', object_id=patient.pk)
    logger.info('patient self-registered patient=%s', patient.pk)
    return patient, user


def create_applicant_task(patient: Patient) -> Task | None:
    admin = User.objects.admins().order_by('pk').first()
    if admin is None:
        return None
    try:
        with transaction.atomic():
            return Task.objects.create(
                patient=patient,
                user=admin,
                title=f"New Applicant - {patient.full_name}"[:100],
                description='Verify ID & prep for provider',
                status=Task.Status.PENDING,
                due_date=timezone.now() + timedelta(days=3),
            )
    except Exception as e:
        logger.warning('failed to create applicant task for patient=%s: %s', patient.pk, e)
        return None


def delete_patient(deleted_by: User, patient: Patient) -> None:
    pk = patient.pk
    patient.delete()
    log_action(user=deleted_by, action='patient_delete', object_type='patient', object_id=pk)
    logger.info('patient deleted patient=%s by user=%s', pk, deleted_by.pk)


def search_patients(queryset, q: str | None):
    q = (q or '').strip()
    if not q:
        return queryset.none()
    return queryset.filter(
        Q(first_name__icontains=q)
        | Q(last_name__icontains=q)
        | Q(email__icontains=q)
        | Q(medical_record_number__icontains=q)
    ).order_by('last_name', 'first_name')[:SEARCH_LIMIT]
