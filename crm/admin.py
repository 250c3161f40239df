"""
Django admin registrations for the CRM models.

Superusers can inspect and correct data under ``/admin/``.  Django admin
access is governed by ``is_staff``, independent of the CRM role.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuditEvent, Message, Patient, Task, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_staff')
    search_fields = ('username', 'email')
    fieldsets = BaseUserAdmin.fieldsets + (('CRM', {'fields': ('role',)}),)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'last_name', 'first_name', 'medical_record_number', 'status', 'user')
    list_filter = ('status',)
    search_fields = ('first_name', 'last_name', 'email', 'medical_record_number')


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'status', 'patient', 'user', 'due_date', 'completed_at')
    list_filter = ('status',)
    search_fields = ('title', 'patient__last_name', 'user__username')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'user', 'message_type', 'created_at')
    list_filter = ('message_type',)
    search_fields = ('patient__last_name', 'user__email')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
