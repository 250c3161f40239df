"""Clinical CRM application.

Models, role-based policies and the REST endpoints for patients, tasks
and messages.
"""
