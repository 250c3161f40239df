"""
Patient management views.

Patients are administered by admins only; the policy denies every
patient action to patient-role users, including reading their own
record.  Listings start from the policy scope and only then apply the
status filter, sort order and pagination.

The task blocks of the patient detail view list that patient's own tasks,
narrowed by the task scope, rather than every task in the scope.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from crm.models import Patient, Task
from crm.permissions import policy_permission
from crm.policies.actor import actor_for_request
from crm.policies.base import CREATE, DESTROY, INDEX, SHOW, UPDATE
from crm.policies.registry import authorize, policy_scope
from crm.serializers.patient import PatientListQuerySerializer, PatientSearchQuerySerializer, PatientSerializer
from crm.services.pagination import paginate
from crm.services.patients import create_patient, delete_patient, search_patients

from .messages import serialize_message
from .tasks import serialize_task


def serialize_patient(patient: Patient) -> dict:
    return {
        'id': patient.id,
        'firstName': patient.first_name,
        'lastName': patient.last_name,
        'fullName': patient.full_name,
        'email': patient.email,
        'phone': patient.phone,
        'dateOfBirth': patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        'age': patient.age,
        'medicalRecordNumber': patient.medical_record_number,
        'status': patient.status,
        'userId': patient.user_id,
        'healthQuestionOne': patient.health_question_one,
        'healthQuestionTwo': patient.health_question_two,
        'healthQuestionThree': patient.health_question_three,
        'createdAt': patient.created_at.isoformat() if patient.created_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, policy_permission('patient', GET=INDEX, POST=CREATE)])
def patients_list(request):
    actor = actor_for_request(request)
    if request.method == 'GET':
        q = PatientListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = policy_scope(actor, Patient)
        if q.validated_data.get('status') == Patient.Status.ACTIVE:
            qs = qs.active()
        elif q.validated_data.get('status') == Patient.Status.INACTIVE:
            qs = qs.inactive()
        if q.validated_data.get('sort') == 'name':
            qs = qs.by_name()
        elif q.validated_data.get('sort') == 'recent':
            qs = qs.recent()
        else:
            qs = qs.order_by('-created_at', '-pk')
        items, pagination = paginate(qs, q.validated_data.get('page'), q.validated_data.get('pageSize'))
        return Response({'ok': True, 'data': [serialize_patient(p) for p in items], 'pagination': pagination})
    # POST
    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient, _ = create_patient(request.user, s.validated_data)
    return Response({'ok': True, 'data': serialize_patient(patient)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, policy_permission('patient', GET=INDEX)])
def patients_search(request):
    q = PatientSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = policy_scope(actor_for_request(request), Patient)
    results = search_patients(qs, q.validated_data.get('q'))
    return Response([
        {
            'id': p.id,
            'fullName': p.full_name,
            'email': p.email,
            'medicalRecordNumber': p.medical_record_number,
            'status': p.status,
        }
        for p in results
    ])


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, pk: int):
    actor = actor_for_request(request)
    patient = get_object_or_404(Patient, pk=pk)
    if request.method == 'GET':
        grant = authorize(actor, SHOW, patient)
        tasks = policy_scope(actor, Task, grant.record.tasks.all())
        data = serialize_patient(grant.record)
        data['recentMessages'] = [serialize_message(m) for m in grant.record.messages.recent()[:10]]
        data['pendingTasks'] = [serialize_task(t) for t in tasks.pending().by_due_date()[:10]]
        data['completedTasks'] = [serialize_task(t) for t in tasks.completed().recent()[:5]]
        return Response({'ok': True, 'data': data})
    if request.method in ('PUT', 'PATCH'):
        grant = authorize(actor, UPDATE, patient)
        s = PatientSerializer(grant.record, data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        patient = s.save()
        return Response({'ok': True, 'data': serialize_patient(patient)})
    # DELETE
    grant = authorize(actor, DESTROY, patient)
    delete_patient(request.user, grant.record)
    return Response(status=status.HTTP_204_NO_CONTENT)
