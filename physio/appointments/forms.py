from django import forms
from django.utils import timezone

from physio.core.forms import IdListField

DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M']


class LocalDateTimeField(forms.DateTimeField):
    """
    Accepts ISO 8601 date-times. Values with an offset are converted to the
    clinic's local wall-clock time, since appointments are stored naive.
    """

    def to_python(self, value):
        value = super().to_python(value)
        if value is not None and timezone.is_aware(value):
            value = timezone.make_naive(value)
        return value


class BookingForm(forms.Form):
    service_ids = IdListField(error_messages={'required': 'Select at least one service'})
    date = LocalDateTimeField(input_formats=DATETIME_FORMATS)
    therapist_id = forms.IntegerField(required=False)
    patient_id = forms.IntegerField(required=False)
    notes = forms.CharField(required=False)


class PatientForm(forms.Form):
    """Contact details of a patient booking without an account"""

    email = forms.EmailField()
    name = forms.CharField(required=False, max_length=255)
    phone = forms.CharField(required=False, max_length=32)


class StatusForm(forms.Form):
    # Unknown statuses are rejected by the status workflow itself
    status = forms.CharField()
    therapist_id = forms.IntegerField(required=False)


class RescheduleForm(forms.Form):
    date = LocalDateTimeField(input_formats=DATETIME_FORMATS)
    reason = forms.CharField(required=False)


class CompleteForm(forms.Form):
    notes = forms.CharField(required=False)
