from django import forms


class SurveyForm(forms.Form):
    satisfaction = forms.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            'required': 'A valid rating (1-5) is required',
            'min_value': 'A valid rating (1-5) is required',
            'max_value': 'A valid rating (1-5) is required',
            'invalid': 'A valid rating (1-5) is required',
        },
    )
    comments = forms.CharField(required=False)
