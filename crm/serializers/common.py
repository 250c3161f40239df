import bleach
from rest_framework import serializers


def clean_text(value: str | None) -> str:
    return bleach.clean((value or '').strip(), tags=[], strip=True)


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)
