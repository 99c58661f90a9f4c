# physio/staff/views.py
"""
Staff JSON endpoints: recurring schedules and therapist administration
"""
from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from physio.core.api import (
    form_error_response,
    json_error,
    parse_json_body,
    role_required,
    scheduling_error_response,
)
from physio.core.exceptions import SchedulingError

from . import services
from .forms import ScheduleForm, ScheduleUpdateForm, TherapistServicesForm
from .models import Schedule

User = get_user_model()


def serialize_schedule(schedule):
    return {
        'id': schedule.id,
        'therapist': {
            'id': schedule.therapist_id,
            'name': schedule.therapist.display_name,
            'email': schedule.therapist.email,
        },
        'day_of_week': schedule.day_of_week,
        'start_time': schedule.start_time.strftime('%H:%M'),
        'end_time': schedule.end_time.strftime('%H:%M'),
        'service': {
            'id': schedule.service_id,
            'name': schedule.service.name,
        },
        'is_active': schedule.is_active,
    }


def serialize_therapist(therapist):
    return {
        'id': therapist.id,
        'name': therapist.display_name,
        'email': therapist.email,
        'phone': therapist.phone,
        'is_active': therapist.is_active,
        'services': [
            {'id': ts.service_id, 'name': ts.service.name}
            for ts in therapist.therapist_services.select_related('service')
        ],
    }


@csrf_exempt
@require_http_methods(["GET", "POST"])
@role_required(User.ADMIN, User.THERAPIST)
def schedules_json(request):
    """
    GET: list schedules (therapists only see their own)
    POST: create a schedule (administrators only)
    """
    if request.method == "GET":
        schedules = Schedule.objects.select_related('therapist', 'service')
        if request.user.role == User.THERAPIST:
            schedules = schedules.filter(therapist=request.user)
        elif request.GET.get('therapist_id'):
            schedules = schedules.filter(therapist_id=request.GET['therapist_id'])
        return JsonResponse([serialize_schedule(s) for s in schedules], safe=False)

    if request.user.role != User.ADMIN:
        return json_error("Only administrators can create schedules", status=403, code="permission_denied")

    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = ScheduleForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        schedule = services.create_schedule(**form.cleaned_data)
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'schedule': serialize_schedule(schedule)}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@role_required(User.ADMIN, User.THERAPIST)
def schedule_detail_json(request, schedule_id):
    schedule = get_object_or_404(Schedule.objects.select_related('therapist', 'service'), pk=schedule_id)

    if request.method == "GET":
        if request.user.role == User.THERAPIST and schedule.therapist_id != request.user.pk:
            return json_error("Not allowed to view this schedule", status=403, code="permission_denied")
        return JsonResponse(serialize_schedule(schedule))

    if request.user.role != User.ADMIN:
        return json_error("Only administrators can change schedules", status=403, code="permission_denied")

    if request.method == "DELETE":
        schedule.delete()
        return JsonResponse({'success': True, 'message': 'Schedule deleted'})

    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = ScheduleUpdateForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        schedule = services.update_schedule(schedule, **form.cleaned_data)
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'schedule': serialize_schedule(schedule)})


@csrf_exempt
@require_http_methods(["POST"])
@role_required(User.ADMIN)
def toggle_therapist_active_json(request, therapist_id):
    therapist = get_object_or_404(User, pk=therapist_id, role=User.THERAPIST)
    therapist = services.toggle_therapist_active(therapist)
    return JsonResponse({'success': True, 'therapist': serialize_therapist(therapist)})


@csrf_exempt
@require_http_methods(["PUT"])
@role_required(User.ADMIN)
def therapist_services_json(request, therapist_id):
    therapist = get_object_or_404(User, pk=therapist_id, role=User.THERAPIST)

    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = TherapistServicesForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        services.set_therapist_services(therapist, form.cleaned_data['service_ids'])
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'therapist': serialize_therapist(therapist)})
