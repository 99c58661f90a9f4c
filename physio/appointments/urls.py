from django.urls import path

from . import views

app_name = 'appointments'

urlpatterns = [
    # Booking and listing
    path('api/appointments/', views.appointments_json, name='appointments-json'),
    path('api/appointments/<int:appointment_id>/', views.appointment_detail_json, name='appointment-detail-json'),

    # Status workflow
    path('api/appointments/<int:appointment_id>/status/', views.appointment_status_json, name='appointment-status'),
    path('api/appointments/<int:appointment_id>/confirm/', views.confirm_appointment_json, name='appointment-confirm'),
    path('api/appointments/<int:appointment_id>/reschedule/', views.reschedule_appointment_json, name='appointment-reschedule'),
    path('api/appointments/<int:appointment_id>/complete/', views.complete_appointment_json, name='appointment-complete'),
]
