"""
Signed survey links.

The survey endpoint is public, so the emailed link carries a token signed
with ``SECRET_KEY`` for its appointment. A bare appointment id is not enough
to read or submit a survey.
"""
from urllib.parse import urlencode

from django.conf import settings
from django.core import signing
from django.urls import reverse

from physio.core.exceptions import InvalidSurveyToken

SALT = "physio.surveys.link"


def _signer():
    return signing.TimestampSigner(salt=SALT)


def token_max_age():
    return getattr(settings, "SURVEY_TOKEN_MAX_AGE_DAYS", 30) * 24 * 60 * 60


def make_survey_token(appointment_id):
    return _signer().sign(str(appointment_id))


def check_survey_token(appointment_id, token):
    """Raise InvalidSurveyToken unless ``token`` was issued for this appointment and has not expired"""
    if not token or not isinstance(token, str):
        raise InvalidSurveyToken("A survey token is required")
    try:
        signed_id = _signer().unsign(token, max_age=token_max_age())
    except signing.SignatureExpired:
        raise InvalidSurveyToken("The survey link has expired")
    except signing.BadSignature:
        raise InvalidSurveyToken()
    if signed_id != str(appointment_id):
        raise InvalidSurveyToken()


def survey_link(appointment_id):
    """Absolute link to the survey of an appointment, token included"""
    base_url = getattr(settings, "SITE_URL", "").rstrip("/")
    path = reverse("surveys:survey-json", args=[appointment_id])
    return f"{base_url}{path}?{urlencode({'token': make_survey_token(appointment_id)})}"
