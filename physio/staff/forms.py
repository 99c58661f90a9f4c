# physio/staff/forms.py
from django import forms

from physio.core.forms import IdListField

from .models import DAY_CHOICES

TIME_FORMATS = ['%H:%M']


class ScheduleForm(forms.Form):
    """Validates a new weekly window; times are "HH:MM" 24-hour strings"""

    therapist_id = forms.IntegerField()
    day_of_week = forms.ChoiceField(choices=DAY_CHOICES)
    start_time = forms.TimeField(input_formats=TIME_FORMATS, error_messages={'invalid': 'Invalid time format (HH:MM)'})
    end_time = forms.TimeField(input_formats=TIME_FORMATS, error_messages={'invalid': 'Invalid time format (HH:MM)'})
    service_id = forms.IntegerField()
    is_active = forms.NullBooleanField(required=False)

    def clean_is_active(self):
        value = self.cleaned_data.get('is_active')
        return True if value is None else value


class ScheduleUpdateForm(forms.Form):
    """Partial update; omitted fields keep their stored values"""

    day_of_week = forms.ChoiceField(choices=DAY_CHOICES, required=False)
    start_time = forms.TimeField(input_formats=TIME_FORMATS, required=False, error_messages={'invalid': 'Invalid time format (HH:MM)'})
    end_time = forms.TimeField(input_formats=TIME_FORMATS, required=False, error_messages={'invalid': 'Invalid time format (HH:MM)'})
    service_id = forms.IntegerField(required=False)
    is_active = forms.NullBooleanField(required=False)


class TherapistServicesForm(forms.Form):
    service_ids = IdListField(required=False)
