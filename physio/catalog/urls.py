from django.urls import path

from . import views

app_name = 'catalog'

urlpatterns = [
    path('api/services/', views.service_list_json, name='service-list-json'),
    path('api/services/<int:service_id>/', views.get_service_details, name='service-details'),
]
