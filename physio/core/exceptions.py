"""
Errors raised by the scheduling core.

Every error is user-facing: views turn them into a rejected request
(JSON body with ``error`` code and ``message``) instead of a crash.
"""


class SchedulingError(Exception):
    """Base class for recoverable booking/scheduling errors"""

    code = "scheduling_error"
    status_code = 400
    default_message = "The request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {"success": False, "error": self.code, "message": self.message}


class NoEligibleTherapist(SchedulingError):
    code = "no_eligible_therapist"
    default_message = "No therapist available for the requested services"


class NoAvailableSlot(SchedulingError):
    code = "no_available_slot"
    status_code = 409
    default_message = "No therapist available at this date/time"


class ScheduleOverlap(SchedulingError):
    code = "schedule_overlap"
    status_code = 409
    default_message = "The schedule overlaps an existing schedule"


class InvalidTimeRange(SchedulingError):
    code = "invalid_time_range"
    default_message = "End time must be after start time"


class UnknownTherapistOrService(SchedulingError):
    code = "unknown_therapist_or_service"
    default_message = "The referenced therapist or service does not exist or is inactive"


class InvalidStatus(SchedulingError):
    code = "invalid_status"
    default_message = "Invalid appointment status"


class InvalidStatusTransition(SchedulingError):
    code = "invalid_status_transition"
    default_message = "The appointment cannot be changed in its current status"


class InvalidAppointmentDate(SchedulingError):
    code = "invalid_appointment_date"
    default_message = "The appointment date must be in the future"


class AppointmentNotFound(SchedulingError):
    code = "appointment_not_found"
    status_code = 404
    default_message = "Appointment not found"


class SurveyNotAllowed(SchedulingError):
    code = "survey_not_allowed"
    default_message = "Only completed appointments can be rated"


class SurveyAlreadySubmitted(SchedulingError):
    code = "survey_already_submitted"
    status_code = 409
    default_message = "A survey already exists for this appointment"


class PermissionDenied(SchedulingError):
    code = "permission_denied"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class UnknownPatient(SchedulingError):
    code = "unknown_patient"
    default_message = "The patient does not exist"


class InvalidSurveyToken(SchedulingError):
    code = "invalid_survey_token"
    status_code = 403
    default_message = "The survey link is invalid or has expired"
