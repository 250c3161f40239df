"""
DRF permission classes backed by the resource policies.

Function views declare which policy action guards each HTTP method; the
class-level check runs before the view body.  Per-record checks stay in
the view, after the record has been loaded, via
:func:`crm.policies.registry.authorize`.
"""
from rest_framework.permissions import BasePermission

from .exceptions import NotAuthorizedError
from .policies.actor import actor_for_request
from .policies.registry import permitted


class PolicyPermission(BasePermission):
    """Allow a request when the resource policy permits the method's action."""
    resource: str = ''
    actions: dict[str, str] = {}
    message = NotAuthorizedError.default_detail
    code = NotAuthorizedError.default_code

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        actor = actor_for_request(request)
        if actor is None:
            return False
        action = self.actions.get(request.method)
        if action is None:
            # HEAD/OPTIONS follow the read action
            action = self.actions.get('GET') if request.method in ('HEAD', 'OPTIONS') else None
        if action is None:
            return False
        return permitted(actor, action, self.resource)


def policy_permission(resource: str, **actions: str) -> type[PolicyPermission]:
    """Build a permission class, e.g. ``policy_permission('task', GET='index', POST='create')``."""
    return type(
        f"{resource.title()}PolicyPermission",
        (PolicyPermission,),
        {'resource': resource, 'actions': dict(actions)},
    )
