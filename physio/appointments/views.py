"""
Appointment JSON endpoints: booking, listing and the status workflow
"""
from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from physio.core.api import (
    form_error_response,
    json_error,
    parse_json_body,
    role_required,
    scheduling_error_response,
)
from physio.core.exceptions import AppointmentNotFound, PermissionDenied, SchedulingError

from . import services
from .forms import BookingForm, CompleteForm, PatientForm, RescheduleForm, StatusForm
from .models import Appointment

User = get_user_model()


def serialize_appointment(appointment):
    therapist = appointment.therapist
    return {
        'id': appointment.id,
        'date': appointment.date.isoformat(),
        'status': appointment.status,
        'patient': {
            'id': appointment.patient_id,
            'name': appointment.patient.display_name,
            'email': appointment.patient.email,
            'phone': appointment.patient.phone,
        },
        'therapist': {
            'id': therapist.id,
            'name': therapist.display_name,
        } if therapist else None,
        'services': [
            {
                'id': service.id,
                'name': service.name,
                'duration_min': service.duration_min,
                'price_minor_units': service.price_minor_units,
            }
            for service in appointment.services.all()
        ],
        'notes': appointment.notes,
        'survey_requested_at': appointment.survey_requested_at.isoformat() if appointment.survey_requested_at else None,
        'created_at': appointment.created_at.isoformat(),
    }


def _appointment_queryset():
    return Appointment.objects.select_related('patient', 'therapist').prefetch_related('services')


def _appointments_for(user):
    """Appointments the user may see"""
    appointments = _appointment_queryset()
    if user.role == User.ADMIN:
        return appointments
    if user.role == User.THERAPIST:
        return appointments.filter(therapist=user)
    return appointments.filter(patient=user)


def _get_appointment(user, appointment_id):
    appointment = _appointment_queryset().filter(pk=appointment_id).first()
    if appointment is None:
        raise AppointmentNotFound()
    if user.role == User.THERAPIST and appointment.therapist_id != user.pk:
        raise PermissionDenied("You can only manage your own appointments")
    if user.role == User.PATIENT and appointment.patient_id != user.pk:
        raise PermissionDenied("You can only manage your own appointments")
    return appointment


def _reload(appointment):
    return _appointment_queryset().get(pk=appointment.pk)


def _book(request):
    public = request.GET.get('public') == 'true'
    user = request.user
    if not public and not user.is_authenticated:
        return json_error("Authentication required", status=401, code="unauthorized")

    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = BookingForm(data)
    if not form.is_valid():
        return form_error_response(form)

    # Patient details are taken from anonymous bookings and from staff
    patient_details = None
    is_staff = user.is_authenticated and user.role in (User.ADMIN, User.THERAPIST)
    if (not user.is_authenticated) or (is_staff and data.get('patient')):
        patient_form = PatientForm(data.get('patient') if isinstance(data.get('patient'), dict) else {})
        if not patient_form.is_valid():
            return form_error_response(patient_form)
        patient_details = patient_form.cleaned_data

    cleaned = form.cleaned_data
    try:
        patient = services.resolve_patient(
            user=user,
            patient_id=cleaned['patient_id'] if is_staff else None,
            patient_details=patient_details,
        )
        appointment = services.book_appointment(
            patient=patient,
            service_ids=cleaned['service_ids'],
            date=cleaned['date'],
            therapist_id=cleaned['therapist_id'],
            notes=cleaned['notes'],
            performed_by=user,
        )
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'appointment': serialize_appointment(_reload(appointment))}, status=201)


def _list(request):
    if not request.user.is_authenticated:
        return json_error("Authentication required", status=401, code="unauthorized")

    appointments = _appointments_for(request.user)

    status = request.GET.get('status')
    if status:
        appointments = appointments.filter(status=status)

    therapist_id = request.GET.get('therapist_id')
    if therapist_id and request.user.role == User.ADMIN:
        appointments = appointments.filter(therapist_id=therapist_id)

    date_from = parse_date(request.GET.get('date_from', '') or '')
    if date_from:
        appointments = appointments.filter(date__date__gte=date_from)
    date_to = parse_date(request.GET.get('date_to', '') or '')
    if date_to:
        appointments = appointments.filter(date__date__lte=date_to)

    return JsonResponse([serialize_appointment(a) for a in appointments], safe=False)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def appointments_json(request):
    """
    GET: appointments visible to the user, filtered by status and date range
    POST: book an appointment (``?public=true`` for bookings without an account)
    """
    if request.method == "POST":
        return _book(request)
    return _list(request)


@require_http_methods(["GET"])
@role_required()
def appointment_detail_json(request, appointment_id):
    try:
        appointment = _get_appointment(request.user, appointment_id)
    except SchedulingError as e:
        return scheduling_error_response(e)
    return JsonResponse(serialize_appointment(appointment))


@csrf_exempt
@require_http_methods(["PATCH"])
@role_required(User.ADMIN, User.THERAPIST)
def appointment_status_json(request, appointment_id):
    """
    Change the status; administrators may also reassign the therapist
    """
    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = StatusForm(data)
    if not form.is_valid():
        return form_error_response(form)

    therapist_id = form.cleaned_data['therapist_id']
    if therapist_id is not None and request.user.role != User.ADMIN:
        return json_error("Only administrators can reassign appointments", status=403, code="permission_denied")

    try:
        appointment = _get_appointment(request.user, appointment_id)
        appointment = services.update_status(
            appointment.pk,
            form.cleaned_data['status'],
            therapist_id=therapist_id,
            performed_by=request.user,
        )
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({'success': True, 'appointment': serialize_appointment(_reload(appointment))})


@csrf_exempt
@require_http_methods(["POST"])
@role_required()
def confirm_appointment_json(request, appointment_id):
    try:
        appointment = _get_appointment(request.user, appointment_id)
        appointment = services.confirm_appointment(appointment.pk, performed_by=request.user)
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({
        'success': True,
        'message': 'Appointment confirmed',
        'appointment': serialize_appointment(_reload(appointment)),
    })


@csrf_exempt
@require_http_methods(["POST"])
@role_required()
def reschedule_appointment_json(request, appointment_id):
    try:
        appointment = _get_appointment(request.user, appointment_id)
    except SchedulingError as e:
        return scheduling_error_response(e)

    data = parse_json_body(request)
    if data is None:
        return json_error("Invalid JSON body")

    form = RescheduleForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        appointment = services.reschedule_appointment(
            appointment.pk,
            form.cleaned_data['date'],
            reason=form.cleaned_data['reason'],
            performed_by=request.user,
        )
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({
        'success': True,
        'message': 'Appointment rescheduled',
        'appointment': serialize_appointment(_reload(appointment)),
    })


@csrf_exempt
@require_http_methods(["POST"])
@role_required(User.ADMIN, User.THERAPIST)
def complete_appointment_json(request, appointment_id):
    try:
        appointment = _get_appointment(request.user, appointment_id)
    except SchedulingError as e:
        return scheduling_error_response(e)

    # Closing notes are optional, so an empty or non-JSON body means no notes
    form = CompleteForm(parse_json_body(request) or {})
    if not form.is_valid():
        return form_error_response(form)

    try:
        appointment, changed = services.complete_appointment(
            appointment.pk,
            performed_by=request.user,
            notes=form.cleaned_data['notes'],
        )
    except SchedulingError as e:
        return scheduling_error_response(e)

    return JsonResponse({
        'success': True,
        'message': 'Appointment completed' if changed else 'The appointment was already completed',
        'appointment': serialize_appointment(_reload(appointment)),
    })
