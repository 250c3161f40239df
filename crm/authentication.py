"""
Token authentication for the API.

The stock DRF class loads the token with its user.  The policy layer
also needs the user's linked patient record, so it is joined in the same
query and building the :class:`~crm.policies.actor.Actor` costs nothing
extra.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'

    def authenticate_credentials(self, key):
        model = self.get_model()
        try:
            token = model.objects.select_related('user', 'user__patient').get(key=key)
        except model.DoesNotExist:
            raise exceptions.AuthenticationFailed('Invalid token.')

        if not token.user.is_active:
            raise exceptions.AuthenticationFailed('User inactive or deleted.')

        return (token.user, token)
