"""
URL mappings for the CRM API.

Trailing slashes are omitted, matching ``APPEND_SLASH = False``.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view, password_set_view
from .views import health
from .views.dashboard import dashboard
from .views.messages import messages_list, message_detail
from .views.patients import patients_list, patients_search, patient_detail
from .views.registration import register
from .views.tasks import tasks_list, task_detail, task_complete, task_reopen


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('api/auth/password/set', password_set_view, name='password_set_view'),
    path('api/register', register, name='register'),
    # Dashboard
    path('api/dashboard', dashboard, name='dashboard'),
    # Patients
    path('api/patients', patients_list, name='patients_list'),
    path('api/patients/search', patients_search, name='patients_search'),
    path('api/patients/<int:pk>', patient_detail, name='patient_detail'),
    # Messages
    path('api/patients/<int:patient_id>/messages', messages_list, name='messages_list'),
    path('api/patients/<int:patient_id>/messages/<int:pk>', message_detail, name='message_detail'),
    # Tasks
    path('api/tasks', tasks_list, name='tasks_list'),
    path('api/tasks/<int:pk>', task_detail, name='task_detail'),
    path('api/tasks/<int:pk>/complete', task_complete, name='task_complete'),
    path('api/tasks/<int:pk>/reopen', task_reopen, name='task_reopen'),
]
