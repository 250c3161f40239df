import pytest

from crm.exceptions import NotAuthorizedError, PolicyNotFoundError
from crm.models import Message, Patient, Role, Task
from crm.policies.actor import Actor
from crm.policies.base import COMPLETE, DESTROY, INDEX, SHOW, UPDATE
from crm.policies.message import MessagePolicy
from crm.policies.registry import Authorized, authorize, permitted, policy_for, policy_scope
from crm.policies.task import TaskPolicy

ADMIN = Actor(user_id=1, role=Role.ADMIN)
PATIENT = Actor(user_id=2, role=Role.PATIENT, patient_id=7)


class TestPolicyFor:
    def test_resolves_tag_model_and_instance(self):
        by_tag = policy_for('task')
        assert policy_for(Task) is by_tag
        assert policy_for(Task(id=1)) is by_tag
        assert isinstance(by_tag.policy, TaskPolicy)

    def test_tag_lookup_ignores_case(self):
        assert policy_for('Message').policy.__class__ is MessagePolicy

    def test_dashboard_has_no_model(self):
        assert policy_for('dashboard').model is None

    @pytest.mark.parametrize('target', ['invoice', object(), 42, None, dict])
    def test_unknown_target_raises(self, target):
        with pytest.raises(PolicyNotFoundError):
            policy_for(target)


class TestPermitted:
    def test_class_level_check_has_no_record(self):
        assert permitted(PATIENT, INDEX, 'message') is True
        assert permitted(PATIENT, INDEX, Patient) is False

    def test_record_is_passed_to_predicate(self):
        assert permitted(PATIENT, UPDATE, Message(id=1, patient_id=7, user_id=2)) is True
        assert permitted(PATIENT, UPDATE, Message(id=2, patient_id=7, user_id=1)) is False

    def test_anonymous_actor_is_denied(self):
        assert permitted(None, INDEX, 'dashboard') is False

    def test_unknown_resource_is_an_error_not_a_denial(self):
        with pytest.raises(PolicyNotFoundError):
            permitted(ADMIN, INDEX, 'invoice')


class TestAuthorize:
    def test_returns_grant_carrying_the_record(self):
        task = Task(id=3, patient_id=99, user_id=1)
        grant = authorize(PATIENT, COMPLETE, task)
        assert grant == Authorized(actor=PATIENT, action=COMPLETE, resource='task', record=task)
        assert grant.record is task

    def test_class_level_grant_has_no_record(self):
        grant = authorize(ADMIN, INDEX, Patient)
        assert grant.record is None
        assert grant.resource == 'patient'

    def test_denial_raises_not_authorized(self):
        with pytest.raises(NotAuthorizedError) as excinfo:
            authorize(PATIENT, SHOW, Patient(id=7, user_id=2))
        assert excinfo.value.get_codes() == 'not_authorized'

    def test_denial_for_role_less_actor(self):
        with pytest.raises(NotAuthorizedError):
            authorize(Actor(user_id=5, role=None), INDEX, 'dashboard')

    def test_denial_for_anonymous(self):
        with pytest.raises(NotAuthorizedError):
            authorize(None, DESTROY, Task(id=1))

    def test_denial_is_logged(self, caplog):
        with caplog.at_level('WARNING', logger='crm.policies.registry'):
            with pytest.raises(NotAuthorizedError):
                authorize(PATIENT, DESTROY, Task(id=11))
        assert 'denied destroy on task#11' in caplog.text


class TestPolicyScopeOnLists:
    records = ['a', 'b', 'c']

    def test_admin_keeps_everything(self):
        assert policy_scope(ADMIN, 'task', self.records) == self.records

    @pytest.mark.parametrize('resource', ['patient', 'task', 'message'])
    def test_patient_gets_nothing(self, resource):
        assert policy_scope(PATIENT, resource, self.records) == []

    def test_dashboard_passes_through_for_known_roles(self):
        assert policy_scope(PATIENT, 'dashboard', self.records) == self.records

    @pytest.mark.parametrize('actor', [None, Actor(user_id=9, role=None)])
    def test_unknown_actor_gets_nothing(self, actor):
        assert policy_scope(actor, 'dashboard', self.records) == []

    def test_dashboard_needs_explicit_base(self):
        with pytest.raises(PolicyNotFoundError):
            policy_scope(ADMIN, 'dashboard')
