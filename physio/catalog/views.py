"""
Catalog Views - read-only JSON endpoints for the booking form
"""
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .models import Service


def serialize_service(service):
    return {
        'id': service.id,
        'name': service.name,
        'description': service.description,
        'duration_min': service.duration_min,
        'price_minor_units': service.price_minor_units,
        'is_active': service.is_active,
    }


@require_http_methods(["GET"])
def service_list_json(request):
    """
    Active services; ``?all=true`` includes deactivated ones
    """
    services = Service.objects.all()
    if request.GET.get('all') != 'true':
        services = services.filter(is_active=True)
    return JsonResponse([serialize_service(s) for s in services], safe=False)


@require_http_methods(["GET"])
def get_service_details(request, service_id):
    """
    Return service details (price and duration) as JSON
    Used for auto-filling the booking form
    """
    try:
        service = Service.objects.get(id=service_id)
    except Service.DoesNotExist:
        return JsonResponse({
            'success': False,
            'message': 'Service not found'
        }, status=404)

    return JsonResponse({
        'success': True,
        'service': serialize_service(service),
    })
