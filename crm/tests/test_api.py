from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from crm.models import AuditEvent, Message, Patient, Role, Task
from crm.services.audit import trail_for

from .factories import make_message, make_patient, make_task, make_user

pytestmark = pytest.mark.django_db


def assert_not_authorized(resp):
    assert resp.status_code == 403
    body = resp.json()
    assert body['ok'] is False
    assert body['error']['code'] == 'not_authorized'


class TestAuth:
    def test_login_with_email_returns_tokens_and_role(self, patient_user):
        resp = APIClient().post('/api/auth/login', {'username': patient_user.email, 'password': 'P@ssw0rd1'}, format='json')

        assert resp.status_code == 200
        body = resp.json()
        assert body['ok'] is True
        assert body['token'] and body['jwt_access'] and body['jwt_refresh']
        assert body['role'] == 'patient'
        assert body['user']['patientId'] == patient_user.linked_patient.pk
        assert AuditEvent.objects.filter(action='login', user=patient_user).exists()

    def test_login_rejects_bad_password(self, admin_user):
        resp = APIClient().post('/api/auth/login', {'username': admin_user.username, 'password': 'nope'}, format='json')

        assert resp.status_code == 400
        assert resp.json() == {'ok': False, 'detail': 'Invalid credentials'}

    def test_token_authenticates_api_calls(self, admin_user):
        client = APIClient()
        token = client.post(
            '/api/auth/login', {'username': admin_user.username, 'password': 'P@ssw0rd1'}, format='json'
        ).json()['token']
        client.credentials(HTTP_AUTHORIZATION=f"Token {token}")
        assert client.get('/api/dashboard').status_code == 200

    def test_jwt_authenticates_api_calls(self, admin_user):
        client = APIClient()
        access = client.post(
            '/api/auth/login', {'username': admin_user.username, 'password': 'P@ssw0rd1'}, format='json'
        ).json()['jwt_access']
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        assert client.get('/api/tasks').status_code == 200

    def test_anonymous_is_rejected(self):
        resp = APIClient().get('/api/patients')
        assert resp.status_code in (401, 403)
        assert resp.json()['ok'] is False


class TestPatientsApi:
    def test_admin_lists_and_filters(self, admin_client):
        make_patient(status=Patient.Status.ACTIVE)
        make_patient(status=Patient.Status.INACTIVE)

        body = admin_client.get('/api/patients', {'status': 'inactive'}).json()

        assert body['pagination'] == {'total': 1, 'page': 1, 'pageSize': 20}
        assert body['data'][0]['status'] == 'inactive'

    def test_admin_creates_patient_with_linked_account(self, admin_client, django_capture_on_commit_callbacks):
        payload = {
            'first_name': 'Ada',
            'last_name': 'Lovelace',
            'email': 'Ada@Example.com',
            'phone': '5550001111',
            'date_of_birth': '1990-12-10',
            'medical_record_number': 'MR-1001',
        }
        with django_capture_on_commit_callbacks(execute=True):
            resp = admin_client.post('/api/patients', payload, format='json')

        assert resp.status_code == 201
        patient = Patient.objects.get(pk=resp.json()['data']['id'])
        assert patient.email == 'ada@example.com'
        assert patient.user.is_patient
        assert patient.user.username == 'ada@example.com'
        assert AuditEvent.objects.filter(action='patient_create', object_id=patient.pk).exists()

    def test_admin_create_rejects_taken_email(self, admin_client, admin_user):
        payload = {
            'first_name': 'Ada',
            'last_name': 'Lovelace',
            'email': admin_user.email,
            'phone': '5550001111',
            'date_of_birth': '1990-12-10',
            'medical_record_number': 'MR-1002',
        }
        resp = admin_client.post('/api/patients', payload, format='json')
        assert resp.status_code == 400
        assert resp.json()['error']['code'] == 'invalid'

    def test_admin_detail_update_and_delete(self, admin_client, admin_user):
        patient = make_patient()
        make_task(patient, admin_user)
        make_message(patient, admin_user)

        detail = admin_client.get(f"/api/patients/{patient.pk}").json()['data']
        assert len(detail['pendingTasks']) == 1
        assert len(detail['recentMessages']) == 1

        resp = admin_client.patch(f"/api/patients/{patient.pk}", {'phone': '5559998888'}, format='json')
        assert resp.status_code == 200
        assert resp.json()['data']['phone'] == '5559998888'

        assert admin_client.delete(f"/api/patients/{patient.pk}").status_code == 204
        assert not Task.objects.filter(patient_id=patient.pk).exists()
        assert trail_for('patient', patient.pk).first().action == 'patient_delete'

    def test_detail_only_lists_that_patients_tasks(self, admin_client, admin_user):
        patient, other = make_patient(), make_patient()
        make_task(patient, admin_user)
        make_task(other, admin_user)
        make_task(other, admin_user)

        detail = admin_client.get(f"/api/patients/{patient.pk}").json()['data']

        assert [t['patientId'] for t in detail['pendingTasks']] == [patient.pk]

    def test_search(self, admin_client):
        make_patient(first_name='Grace', last_name='Hopper')
        make_patient(first_name='Alan', last_name='Turing')

        results = admin_client.get('/api/patients/search', {'q': 'hopp'}).json()

        assert [r['fullName'] for r in results] == ['Grace Hopper']

    def test_missing_patient_is_404(self, admin_client):
        resp = admin_client.get('/api/patients/999999')
        assert resp.status_code == 404
        assert resp.json()['ok'] is False

    @pytest.mark.parametrize('method, path', [
        ('get', '/api/patients'),
        ('post', '/api/patients'),
        ('get', '/api/patients/search'),
    ])
    def test_patient_role_is_denied_collection(self, patient_client, method, path):
        assert_not_authorized(getattr(patient_client, method)(path, format='json'))

    @pytest.mark.parametrize('method', ['get', 'patch', 'delete'])
    def test_patient_role_is_denied_own_record(self, patient_client, patient_user, method):
        resp = getattr(patient_client, method)(f"/api/patients/{patient_user.linked_patient.pk}", {}, format='json')
        assert_not_authorized(resp)
        assert Patient.objects.filter(pk=patient_user.linked_patient.pk).exists()


class TestTasksApi:
    def test_admin_creates_lists_and_deletes(self, admin_client, admin_user):
        patient = make_patient()
        due = (timezone.now() + timedelta(days=2)).isoformat()

        resp = admin_client.post('/api/tasks', {'patient': patient.pk, 'title': 'Call back', 'due_date': due}, format='json')
        assert resp.status_code == 201
        task_id = resp.json()['data']['id']
        assert Task.objects.get(pk=task_id).user == admin_user

        body = admin_client.get('/api/tasks', {'status': 'pending'}).json()
        assert [t['id'] for t in body['data']] == [task_id]
        assert body['stats']['totalTasks'] == 1

        assert admin_client.delete(f"/api/tasks/{task_id}").status_code == 204
        assert not Task.objects.filter(pk=task_id).exists()

    def test_assignee_can_be_set_and_changed(self, admin_client, admin_user):
        other_admin = make_user(Role.ADMIN)
        patient = make_patient()
        due = (timezone.now() + timedelta(days=2)).isoformat()

        resp = admin_client.post(
            '/api/tasks', {'patient': patient.pk, 'title': 'Call back', 'due_date': due, 'user': other_admin.pk},
            format='json',
        )
        assert resp.json()['data']['userId'] == other_admin.pk

        task_id = resp.json()['data']['id']
        resp = admin_client.patch(f"/api/tasks/{task_id}", {'user': admin_user.pk}, format='json')

        assert resp.status_code == 200
        assert Task.objects.get(pk=task_id).user == admin_user

    def test_complete_and_reopen(self, admin_client, admin_user):
        task = make_task(make_patient(), admin_user)

        body = admin_client.post(f"/api/tasks/{task.pk}/complete").json()
        assert body['data']['status'] == 'completed'
        assert body['data']['completedAt'] is not None
        assert body['stats']['completedTasks'] == 1

        body = admin_client.post(f"/api/tasks/{task.pk}/reopen").json()
        assert body['data']['status'] == 'pending'
        assert body['data']['completedAt'] is None

    def test_patient_listing_is_empty(self, patient_client, patient_user, admin_user):
        make_task(patient_user.linked_patient, admin_user)
        make_task(make_patient(), admin_user)

        resp = patient_client.get('/api/tasks')

        assert resp.status_code == 200
        body = resp.json()
        assert body['data'] == []
        assert body['pagination']['total'] == 0
        assert body['stats']['totalTasks'] == 0

    def test_patient_acts_on_task_by_id(self, patient_client, patient_user, admin_user):
        task = make_task(patient_user.linked_patient, admin_user)

        assert patient_client.get(f"/api/tasks/{task.pk}").status_code == 200
        resp = patient_client.patch(f"/api/tasks/{task.pk}", {'description': 'Brought labs'}, format='json')
        assert resp.status_code == 200
        assert patient_client.post(f"/api/tasks/{task.pk}/complete").status_code == 200
        assert Task.objects.get(pk=task.pk).status == Task.Status.COMPLETED

    def test_patient_may_not_create_or_delete(self, patient_client, patient_user, admin_user):
        task = make_task(patient_user.linked_patient, admin_user)
        payload = {'patient': task.patient_id, 'title': 'Mine', 'due_date': task.due_date.isoformat()}

        assert_not_authorized(patient_client.post('/api/tasks', payload, format='json'))
        assert_not_authorized(patient_client.delete(f"/api/tasks/{task.pk}"))
        assert Task.objects.filter(pk=task.pk).exists()

    def test_patient_without_record_may_not_view_task(self, patient_user, admin_user):
        patient_user.linked_patient.delete()
        patient_user.refresh_from_db()
        task = make_task(make_patient(), admin_user, title='Original')

        client = APIClient()
        client.force_authenticate(user=patient_user)
        assert_not_authorized(client.get(f"/api/tasks/{task.pk}"))
        assert Task.objects.get(pk=task.pk).title == 'Original'


class TestMessagesApi:
    def test_patient_listing_is_empty_but_posting_works(self, patient_client, patient_user, admin_user):
        patient = patient_user.linked_patient
        make_message(patient, admin_user)

        listing = patient_client.get(f"/api/patients/{patient.pk}/messages").json()
        assert listing['data'] == []

        resp = patient_client.post(f"/api/patients/{patient.pk}/messages", {'content': 'Hi doc'}, format='json')
        assert resp.status_code == 201
        created = Message.objects.get(pk=resp.json()['data']['id'])
        assert created.user == patient_user
        assert created.patient == patient

    def test_admin_lists_patient_messages(self, admin_client, admin_user):
        patient = make_patient()
        make_message(patient, admin_user)
        make_message(make_patient(), admin_user)

        body = admin_client.get(f"/api/patients/{patient.pk}/messages").json()

        assert body['pagination']['total'] == 1
        assert body['data'][0]['patientId'] == patient.pk

    def test_patient_updates_only_own_message(self, patient_client, patient_user, admin_user):
        patient = patient_user.linked_patient
        mine = make_message(patient, patient_user, content='first draft')
        theirs = make_message(patient, admin_user, content='from staff')

        resp = patient_client.patch(f"/api/patients/{patient.pk}/messages/{mine.pk}", {'content': 'edited'}, format='json')
        assert resp.status_code == 200
        assert resp.json()['data']['content'] == 'edited'

        resp = patient_client.patch(f"/api/patients/{patient.pk}/messages/{theirs.pk}", {'content': 'x'}, format='json')
        assert_not_authorized(resp)
        assert Message.objects.get(pk=theirs.pk).content == 'from staff'

    def test_patient_may_not_delete_own_message(self, patient_client, patient_user):
        patient = patient_user.linked_patient
        mine = make_message(patient, patient_user)

        assert_not_authorized(patient_client.delete(f"/api/patients/{patient.pk}/messages/{mine.pk}"))
        assert Message.objects.filter(pk=mine.pk).exists()

    def test_message_of_another_patient_is_404(self, admin_client, admin_user):
        message = make_message(make_patient(), admin_user)
        other = make_patient()
        assert admin_client.get(f"/api/patients/{other.pk}/messages/{message.pk}").status_code == 404

    def test_unknown_patient_is_404(self, patient_client):
        assert patient_client.post('/api/patients/999999/messages', {'content': 'hi'}, format='json').status_code == 404


class TestDashboard:
    def test_admin_dashboard(self, admin_client, admin_user):
        patient = make_patient()
        make_task(patient, admin_user)
        make_message(patient, admin_user)

        body = admin_client.get('/api/dashboard').json()

        assert body['role'] == 'admin'
        assert body['patients']['total'] == 1
        assert body['tasks']['pendingTasks'] == 1
        assert len(body['upcomingTasks']) == 1
        assert body['recentMessages'] == 1

    def test_patient_dashboard_is_empty(self, patient_client, patient_user, admin_user):
        make_task(patient_user.linked_patient, admin_user)

        body = patient_client.get('/api/dashboard').json()

        assert body['role'] == 'patient'
        assert body['patients']['total'] == 0
        assert body['tasks']['totalTasks'] == 0
        assert body['upcomingTasks'] == []


def test_healthz():
    resp = APIClient().get('/healthz')
    assert resp.status_code == 200
