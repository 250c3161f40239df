from rest_framework import serializers

from crm.models import Message

from .common import PageQuerySerializer, clean_text


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ['content', 'message_type']

    def validate_content(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('message cannot be empty')
        return v


class MessageListQuerySerializer(PageQuerySerializer):
    pass
