from rest_framework import serializers

from crm.models import Patient

from .common import PageQuerySerializer, clean_text

PATIENT_FIELDS = [
    'first_name', 'last_name', 'email', 'phone', 'date_of_birth',
    'health_question_one', 'health_question_two', 'health_question_three',
]


class PatientSerializer(serializers.ModelSerializer):
    """Administrator create/update of a patient record."""

    class Meta:
        model = Patient
        fields = PATIENT_FIELDS + ['medical_record_number', 'status']

    def validate_first_name(self, v):
        return self._clean_name(v)

    def validate_last_name(self, v):
        return self._clean_name(v)

    @staticmethod
    def _clean_name(v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('must be at least 2 characters')
        return v

    def validate_email(self, v):
        return v.strip().lower()


class PatientRegistrationSerializer(PatientSerializer):
    """Public self-registration; record number and status are assigned by the server."""

    class Meta(PatientSerializer.Meta):
        fields = PATIENT_FIELDS


class PatientListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=Patient.Status.values, required=False)
    sort = serializers.ChoiceField(choices=['name', 'recent'], required=False)


class PatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
