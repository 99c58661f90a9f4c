from django.urls import path

from . import views

app_name = 'surveys'

urlpatterns = [
    path('api/<int:appointment_id>/', views.survey_json, name='survey-json'),
]
