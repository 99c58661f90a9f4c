from django import forms
from django.core.exceptions import ValidationError


class IdListField(forms.Field):
    """A JSON list of primary keys, returned de-duplicated in input order"""

    default_error_messages = {
        'invalid_list': 'Enter a list of ids.',
        'invalid_id': '"%(value)s" is not a valid id.',
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValidationError(self.error_messages['invalid_list'], code='invalid_list')
        ids = []
        for item in value:
            try:
                pk = int(item)
            except (TypeError, ValueError):
                raise ValidationError(
                    self.error_messages['invalid_id'], code='invalid_id', params={'value': item}
                )
            if pk not in ids:
                ids.append(pk)
        return ids

    def validate(self, value):
        if self.required and not value:
            raise ValidationError(self.error_messages['required'], code='required')
