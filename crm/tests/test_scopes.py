import pytest

from crm.models import Message, Patient, Task
from crm.policies.actor import Actor
from crm.policies.base import INDEX, SHOW
from crm.policies.registry import permitted, policy_scope

from .factories import make_message, make_patient, make_task

pytestmark = pytest.mark.django_db


@pytest.fixture
def five_tasks(admin_user, patient_user):
    own = patient_user.linked_patient
    other = make_patient()
    tasks = [make_task(own, admin_user) for _ in range(2)]
    tasks += [make_task(other, admin_user) for _ in range(3)]
    return tasks


def test_patient_may_list_tasks_but_sees_none(patient_user, five_tasks):
    actor = Actor.from_user(patient_user)

    assert permitted(actor, INDEX, Task) is True
    scoped = policy_scope(actor, Task)
    assert scoped.count() == 0
    # yet each task of their own record is viewable by id
    own = [t for t in five_tasks if t.patient_id == actor.patient_id]
    assert len(own) == 2
    assert all(permitted(actor, SHOW, t) for t in own)


def test_admin_scope_is_every_task(admin_user, five_tasks):
    actor = Actor.from_user(admin_user)
    assert set(policy_scope(actor, Task).values_list('pk', flat=True)) == {t.pk for t in five_tasks}


def test_scope_stays_a_queryset_for_chaining(admin_user, five_tasks):
    scoped = policy_scope(Actor.from_user(admin_user), Task)
    five_tasks[0].status = Task.Status.COMPLETED
    five_tasks[0].save()
    assert scoped.pending().count() == 4
    assert list(scoped.completed()) == [five_tasks[0]]


def test_scope_narrows_a_given_base(admin_user, patient_user, five_tasks):
    own = patient_user.linked_patient
    assert policy_scope(Actor.from_user(admin_user), Task, own.tasks.all()).count() == 2
    assert policy_scope(Actor.from_user(patient_user), Task, own.tasks.all()).count() == 0


def test_patient_scopes_are_empty_for_patients_and_messages(admin_user, patient_user):
    own = patient_user.linked_patient
    make_message(own, patient_user)
    make_message(own, admin_user)
    actor = Actor.from_user(patient_user)

    assert policy_scope(actor, Patient).count() == 0
    assert policy_scope(actor, Message).count() == 0
    assert policy_scope(Actor.from_user(admin_user), Message).count() == 2
    assert policy_scope(Actor.from_user(admin_user), Patient).count() == Patient.objects.count()


def test_role_less_user_gets_empty_scopes(admin_user, five_tasks):
    admin_user.role = 'auditor'
    actor = Actor.from_user(admin_user)

    assert actor.role is None
    assert policy_scope(actor, Task).count() == 0
    assert permitted(actor, INDEX, 'dashboard') is False
