"""
Public patient self-registration.

Anyone may register.  The new account gets a random password; the
patient sets a real one through the link in the welcome email.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from crm.serializers.patient import PatientRegistrationSerializer
from crm.services.patients import register_patient
from crm.throttling import RegistrationRateThrottle


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegistrationRateThrottle])
def register(request):
    s = PatientRegistrationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient, _ = register_patient(s.validated_data)
    return Response(
        {
            'ok': True,
            'patientId': patient.id,
            'detail': 'Thank you for registering! Please check your email to set your password.',
        },
        status=status.HTTP_201_CREATED,
    )
