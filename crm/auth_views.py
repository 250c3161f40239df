"""
Authentication views.

Login accepts a username or an email address and returns both a DRF
token and a JWT pair.  Refresh and logout wrap simplejwt.  Password set redeems the
link from the welcome email.  Role is never
taken from the request; it is whatever is stored on the account.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from crm.models import User
from crm.serializers.auth import LoginSerializer, PasswordSetSerializer
from crm.services.audit import client_ip, log_action
from crm.throttling import LoginRateThrottle

logger = logging.getLogger(__name__)


def _username_for(account: str) -> str:
    if '@' in account:
        user = User.objects.filter(email__iexact=account).only('username').first()
        if user:
            return user.username
    return account


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    account = s.validated_data['account']

    user = authenticate(request, username=_username_for(account), password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='login', object_type='user', detail={'result': 'fail'}, request=request)
        logger.info('login failed ip=%s', client_ip(request))
        return Response({'ok': False, 'detail': 'Invalid credentials'}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok'}, request=request)

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    patient = user.linked_patient
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'role': user.role,
            'patientId': patient.id if patient else None,
        },
    }, status=200)


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    data = dict(resp.data)
    if 'access' in data and 'jwt_access' not in data:
        data['jwt_access'] = data.pop('access')
    return Response(data, status=resp.status_code)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding token of the user."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    return Response({'ok': True, 'blacklisted': count})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def password_set_view(request):
    """Redeem a welcome-email link: ``uid``, ``token`` and the new ``password``."""
    s = PasswordSetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = s.validated_data['user']
    user.set_password(s.validated_data['password'])
    user.save(update_fields=['password'])
    log_action(user=user, action='password_set', object_type='user', object_id=user.id, request=request)
    logger.info('password set user=%s', user.pk)
    return Response({'ok': True, 'detail': 'Password updated. You can now sign in.'})
