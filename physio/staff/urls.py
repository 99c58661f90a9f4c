from django.urls import path

from . import views

app_name = 'staff'

urlpatterns = [
    # Recurring weekly schedules
    path('api/schedules/', views.schedules_json, name='schedules-json'),
    path('api/schedules/<int:schedule_id>/', views.schedule_detail_json, name='schedule-detail-json'),

    # Therapist administration
    path('api/therapists/<int:therapist_id>/toggle-active/', views.toggle_therapist_active_json, name='therapist-toggle-active'),
    path('api/therapists/<int:therapist_id>/services/', views.therapist_services_json, name='therapist-services'),
]
