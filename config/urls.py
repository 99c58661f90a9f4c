from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("appointments/", include("physio.appointments.urls", namespace="appointments")),
    path("staff/", include("physio.staff.urls", namespace="staff")),
    path("catalog/", include("physio.catalog.urls", namespace="catalog")),
    path("surveys/", include("physio.surveys.urls", namespace="surveys")),
]
