"""
Database models for the clinical CRM.

The data model is intentionally small: users carry a role, patients
optionally link to a user account, and tasks and messages hang off a
patient record.  Only the fields the authorization layer and the API
need are modelled; querying helpers live on custom querysets so that
views can chain them after the policy scope has been applied.
"""
from __future__ import annotations

import secrets
from datetime import date, timedelta

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models
from django.utils import timezone


class Role(models.TextChoices):
    ADMIN = 'admin', 'Administrator'
    PATIENT = 'patient', 'Patient'


class UserQuerySet(models.QuerySet):
    def admins(self):
        return self.filter(role=Role.ADMIN)

    def patients(self):
        return self.filter(role=Role.PATIENT)


class CrmUserManager(UserManager.from_queryset(UserQuerySet)):
    pass


class User(AbstractUser):
    """Authenticated principal with a role.

    A patient-role user is linked to at most one :class:`Patient` through
    the reverse ``patient`` accessor.  When a patient-role user is created
    without a record, a placeholder record is created right after the user
    (see ``save``) unless ``skip_patient_creation`` is set, which is what
    the onboarding flows do when the patient record already exists.
    """
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.PATIENT, db_index=True)
    email = models.EmailField(unique=True)

    objects = CrmUserManager()

    skip_patient_creation = False

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_patient(self) -> bool:
        return self.role == Role.PATIENT

    @property
    def linked_patient(self) -> 'Patient | None':
        try:
            return self.patient
        except Patient.DoesNotExist:
            return None

    def save(self, *args, **kwargs):
        created = self._state.adding
        super().save(*args, **kwargs)
        if created and not self.skip_patient_creation:
            self._create_patient_if_needed()

    def _create_patient_if_needed(self) -> None:
        if not self.is_patient or self.linked_patient is not None:
            return
        Patient.objects.create(
            user=self,
            first_name='New',
            last_name='Patient',
            email=self.email,
            phone='0000000000',
            date_of_birth=_years_ago(18),
            medical_record_number=f"MR{secrets.token_hex(4).upper()}",
            status=Patient.Status.ACTIVE,
        )


def _years_ago(years: int) -> date:
    today = timezone.localdate()
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February
        return today.replace(year=today.year - years, day=28)


class PatientQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Patient.Status.ACTIVE)

    def inactive(self):
        return self.filter(status=Patient.Status.INACTIVE)

    def by_name(self):
        return self.order_by('last_name', 'first_name')

    def recent(self):
        return self.order_by('-created_at')


phone_validator = RegexValidator(r'^\d{10,15}$', 'must be 10-15 digits')


class Patient(models.Model):
    """A patient record in the CRM.

    ``user`` is the optional account that owns the record.  Deleting a
    patient cascades to its tasks and messages.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'

    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.CASCADE, related_name='patient'
    )
    first_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    last_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    email = models.EmailField()
    phone = models.CharField(max_length=15, validators=[phone_validator])
    date_of_birth = models.DateField()
    medical_record_number = models.CharField(
        max_length=20, unique=True, validators=[MinLengthValidator(5)]
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE, db_index=True)
    health_question_one = models.TextField(blank=True)
    health_question_two = models.TextField(blank=True)
    health_question_three = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PatientQuerySet.as_manager()

    def __str__(self) -> str:
        return f"{self.full_name} ({self.medical_record_number})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> int | None:
        if not self.date_of_birth:
            return None
        today = timezone.localdate()
        dob = self.date_of_birth
        years = today.year - dob.year
        if (today.month, today.day) < (dob.month, dob.day):
            years -= 1
        return years

    @property
    def pending_tasks_count(self) -> int:
        return self.tasks.pending().count()

    @property
    def recent_messages_count(self) -> int:
        return self.messages.filter(created_at__gt=timezone.now() - timedelta(days=7)).count()


class TaskQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status=Task.Status.PENDING)

    def completed(self):
        return self.filter(status=Task.Status.COMPLETED)

    def overdue(self):
        start_of_today = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        return self.filter(due_date__lt=start_of_today, status=Task.Status.PENDING)

    def due_today(self):
        return self.filter(due_date__date=timezone.localdate())

    def due_this_week(self):
        today = timezone.localdate()
        monday = today - timedelta(days=today.weekday())
        return self.filter(due_date__date__gte=monday, due_date__date__lte=monday + timedelta(days=6))

    def by_due_date(self):
        return self.order_by('due_date')

    def recent(self):
        return self.order_by('-created_at')


class Task(models.Model):
    """Work item attached to a patient and assigned to a user.

    ``completed_at`` follows ``status``: it is stamped when a task moves
    to completed and cleared when it moves back to pending.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='tasks')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=100, validators=[MinLengthValidator(3)])
    description = models.TextField(max_length=1000, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    due_date = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['status', 'due_date'], name='crm_task_status_5b1e0d_idx'),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = dict(zip(field_names, values)).get('status')
        return instance

    def refresh_from_db(self, using=None, fields=None, **kwargs):
        super().refresh_from_db(using=using, fields=fields, **kwargs)
        if fields is None or 'status' in fields:
            self._loaded_status = self.status

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"

    def save(self, *args, **kwargs):
        if self._state.adding or self.status != getattr(self, '_loaded_status', None):
            self.completed_at = timezone.now() if self.status == Task.Status.COMPLETED else None
            update_fields = kwargs.get('update_fields')
            if update_fields is not None and 'status' in update_fields:
                kwargs['update_fields'] = {*update_fields, 'completed_at', 'updated_at'}
        super().save(*args, **kwargs)
        self._loaded_status = self.status

    @property
    def is_overdue(self) -> bool:
        return self.status == Task.Status.PENDING and self.due_date < timezone.now()

    @property
    def is_due_today(self) -> bool:
        return timezone.localtime(self.due_date).date() == timezone.localdate()

    @property
    def completion_time(self) -> timedelta | None:
        if not self.completed_at or not self.created_at:
            return None
        return self.completed_at - self.created_at

    @property
    def days_overdue(self) -> float:
        if not self.is_overdue:
            return 0
        return (timezone.now() - self.due_date) / timedelta(days=1)


class MessageQuerySet(models.QuerySet):
    def recent(self):
        return self.order_by('-created_at')

    def for_patient(self, patient):
        return self.filter(patient=patient)

    def by_user(self, user):
        return self.filter(user=user)

    def incoming(self):
        return self.filter(message_type=Message.Type.INCOMING)

    def outgoing(self):
        return self.filter(message_type=Message.Type.OUTGOING)


class Message(models.Model):
    """A message exchanged about a patient, authored by ``user``."""

    class Type(models.TextChoices):
        INCOMING = 'incoming', 'Incoming'
        OUTGOING = 'outgoing', 'Outgoing'

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='messages')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='messages')
    content = models.TextField(max_length=2000, validators=[MinLengthValidator(1)])
    message_type = models.CharField(max_length=10, choices=Type.choices, default=Type.OUTGOING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        indexes = [models.Index(fields=['patient', 'created_at'], name='crm_message_patient_8c2f4a_idx')]

    def __str__(self) -> str:
        return f"msg {self.pk} patient={self.patient_id}"

    @property
    def sender_name(self) -> str:
        return self.user.email

    @property
    def is_recent(self) -> bool:
        return bool(self.created_at) and self.created_at > timezone.now() - timedelta(hours=1)


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='crm_auditev_action_3d9a7e_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='crm_auditev_object__6f0b21_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
