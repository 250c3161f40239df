"""
Outgoing patient notifications.

New patient accounts are created with an unknown random password; the
welcome email carries a one-time link for the patient to set their own.
"""
from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

from crm.models import Patient, User

logger = logging.getLogger(__name__)


def password_set_link(user: User) -> str:
    params = urlencode({
        'uid': urlsafe_base64_encode(force_bytes(user.pk)),
        'token': default_token_generator.make_token(user),
    })
    return f"{settings.CRM_APP_URL.rstrip('/')}{reverse('password_set_view')}?{params}"


def send_welcome_email(patient: Patient, user: User) -> int:
    link = password_set_link(user)
    body = (
        f"Hello {patient.first_name},\n\n"
        "Your patient account has been created. "
        f"Please choose a password using the link below:\n\n{link}\n"
    )
    sent = send_mail(
        subject='Welcome - set up your patient account',
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[patient.email],
        fail_silently=False,
    )
    logger.info('welcome email sent patient=%s user=%s', patient.pk, user.pk)
    return sent
