"""
Satisfaction survey endpoint, reached from the signed link in the survey email
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from physio.core.api import form_error_response, json_error, parse_json_body, scheduling_error_response
from physio.core.exceptions import SchedulingError

from .forms import SurveyForm
from .services import get_survey, submit_survey
from .tokens import check_survey_token


def serialize_survey(survey):
    return {
        'id': survey.id,
        'appointment_id': survey.appointment_id,
        'satisfaction': survey.satisfaction,
        'comments': survey.comments,
        'created_at': survey.created_at.isoformat(),
    }


@csrf_exempt
@require_http_methods(["GET", "POST"])
def survey_json(request, appointment_id):
    """
    GET: the stored response. POST: submit the rating.
    Both need the ``token`` of the emailed link (query string, or the JSON body on POST).
    """
    data = None
    if request.method == "POST":
        data = parse_json_body(request)
        if data is None:
            return json_error("Invalid JSON body")

    token = request.GET.get('token') or (data or {}).get('token')
    try:
        check_survey_token(appointment_id, token)
    except SchedulingError as e:
        return scheduling_error_response(e)

    if request.method == "GET":
        survey = get_survey(appointment_id)
        if survey is None:
            return json_error("No survey found for this appointment", status=404, code="survey_not_found")
        return JsonResponse({'success': True, 'survey': serialize_survey(survey)})

    form = SurveyForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        survey = submit_survey(
            appointment_id,
            form.cleaned_data['satisfaction'],
            form.cleaned_data['comments'],
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
            ip_address=request.META.get('HTTP_X_FORWARDED_FOR') or request.META.get('REMOTE_ADDR', ''),
        )
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'survey_id': survey.id}, status=201)
