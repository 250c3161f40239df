"""
Patient message views, nested under a patient record.

The patient is looked up first (404 when missing); the message policy
then decides.  The author of a new message is always the requester.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from crm.models import Message, Patient
from crm.permissions import policy_permission
from crm.policies.actor import actor_for_request
from crm.policies.base import CREATE, DESTROY, INDEX, SHOW, UPDATE
from crm.policies.registry import authorize, policy_scope
from crm.serializers.message import MessageListQuerySerializer, MessageSerializer
from crm.services.pagination import paginate


def serialize_message(message: Message) -> dict:
    return {
        'id': message.id,
        'patientId': message.patient_id,
        'userId': message.user_id,
        'content': message.content,
        'messageType': message.message_type,
        'createdAt': message.created_at.isoformat() if message.created_at else None,
        'updatedAt': message.updated_at.isoformat() if message.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, policy_permission('message', GET=INDEX, POST=CREATE)])
def messages_list(request, patient_id: int):
    actor = actor_for_request(request)
    patient = get_object_or_404(Patient, pk=patient_id)
    if request.method == 'GET':
        q = MessageListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = policy_scope(actor, Message, patient.messages.recent())
        items, pagination = paginate(qs, q.validated_data.get('page'), q.validated_data.get('pageSize'))
        return Response({'ok': True, 'data': [serialize_message(m) for m in items], 'pagination': pagination})
    # POST
    s = MessageSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    grant = authorize(actor, CREATE, Message(patient=patient, user=request.user, **s.validated_data))
    grant.record.save()
    return Response({'ok': True, 'data': serialize_message(grant.record)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def message_detail(request, patient_id: int, pk: int):
    actor = actor_for_request(request)
    message = get_object_or_404(Message, pk=pk, patient_id=patient_id)
    if request.method == 'GET':
        grant = authorize(actor, SHOW, message)
        return Response({'ok': True, 'data': serialize_message(grant.record)})
    if request.method in ('PUT', 'PATCH'):
        grant = authorize(actor, UPDATE, message)
        s = MessageSerializer(grant.record, data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        message = s.save()
        return Response({'ok': True, 'data': serialize_message(message)})
    # DELETE
    grant = authorize(actor, DESTROY, message)
    grant.record.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
