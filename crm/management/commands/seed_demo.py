"""
Management command to populate the database with demo data.

Idempotent: accounts are looked up by email and reused, and patients
and their tasks and messages are only created for new accounts.
"""
from datetime import date, timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from crm.models import Message, Patient, Role, Task, User

DEMO_PASSWORD = 'password123'

DEMO_PATIENTS = [
    ('Alice', 'Moreau', 'alice@example.com', '5550000001', (1985, 3, 14), Patient.Status.ACTIVE),
    ('Bruno', 'Keller', 'bruno@example.com', '5550000002', (1972, 11, 2), Patient.Status.ACTIVE),
    ('Chiara', 'Rossi', 'chiara@example.com', '5550000003', (1990, 6, 30), Patient.Status.INACTIVE),
]


class Command(BaseCommand):
    help = 'Populate the database with an admin and demo patients, tasks and messages'

    def add_arguments(self, parser):
        parser.add_argument('--admin-email', default='admin@example.com')
        parser.add_argument('--password', default=DEMO_PASSWORD)

    @transaction.atomic
    def handle(self, *args, **options):
        admin = self.ensure_user(options['admin_email'], Role.ADMIN, options['password'])
        for first, last, email, phone, dob, status in DEMO_PATIENTS:
            user, created = self.ensure_patient_user(email, options['password'])
            if not created:
                continue
            patient = user.patient
            patient.first_name, patient.last_name = first, last
            patient.phone = phone
            patient.date_of_birth = date(*dob)
            patient.status = status
            patient.save()
            self.create_activity(patient, admin, user)
            self.stdout.write(f"patient {patient.full_name} ({patient.medical_record_number})")
        self.stdout.write(self.style.SUCCESS('Demo data ready.'))

    def ensure_user(self, email, role, password):
        user = User.objects.filter(email=email).first()
        if user is None:
            user = User.objects.create_user(username=email, email=email, password=password, role=role)
            self.stdout.write(self.style.SUCCESS(f"created {role}: {email}"))
        return user

    def ensure_patient_user(self, email, password):
        user = User.objects.filter(email=email).first()
        if user is not None:
            return user, False
        # save() links a placeholder patient record to new patient-role users
        return User.objects.create_user(username=email, email=email, password=password, role=Role.PATIENT), True

    def create_activity(self, patient, admin, user):
        now = timezone.now()
        Task.objects.create(
            patient=patient, user=admin, title='Intake review',
            description='Review intake questionnaire', due_date=now + timedelta(days=2),
        )
        Task.objects.create(
            patient=patient, user=admin, title='Follow-up call',
            description='Check in after first visit', due_date=now - timedelta(days=1),
        )
        Task.objects.create(
            patient=patient, user=admin, title='Send lab referral',
            status=Task.Status.COMPLETED, due_date=now - timedelta(days=3),
        )
        Message.objects.create(
            patient=patient, user=admin, message_type=Message.Type.OUTGOING,
            content=f"Welcome {patient.first_name}, your first appointment is confirmed.",
        )
        Message.objects.create(
            patient=patient, user=user, message_type=Message.Type.INCOMING,
            content='Thank you, see you then.',
        )
