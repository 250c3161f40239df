from rest_framework import serializers

from crm.models import Task
from crm.services.tasks import SORTS, STATUS_FILTERS

from .common import PageQuerySerializer, clean_text


class TaskSerializer(serializers.ModelSerializer):
    class Meta:
        model = Task
        fields = ['patient', 'user', 'title', 'description', 'status', 'due_date']
        # assignee; new tasks default to the requester
        extra_kwargs = {'user': {'required': False}}

    def validate_title(self, v):
        v = clean_text(v)
        if len(v) < 3:
            raise serializers.ValidationError('must be at least 3 characters')
        return v

    def validate_description(self, v):
        return clean_text(v)


class TaskListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=sorted(STATUS_FILTERS), required=False)
    sort = serializers.ChoiceField(choices=sorted(SORTS), required=False)
