from io import StringIO

import pytest
from django.core.management import call_command

from crm.models import Message, Patient, Task, User

pytestmark = pytest.mark.django_db


def test_seed_demo_is_idempotent():
    call_command('seed_demo', stdout=StringIO())
    counts = (User.objects.count(), Patient.objects.count(), Task.objects.count(), Message.objects.count())

    call_command('seed_demo', stdout=StringIO())

    assert counts == (4, 3, 9, 6)
    assert (User.objects.count(), Patient.objects.count(), Task.objects.count(), Message.objects.count()) == counts
    assert User.objects.admins().get().email == 'admin@example.com'
    assert Patient.objects.inactive().get().first_name == 'Chiara'
