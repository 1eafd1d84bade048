"""
URL configuration for the country_snapshots project.

All public routes live in countries.urls:
    /countries, /countries/refresh, /countries/image, /countries/<name>, /status
"""
from django.http import JsonResponse
from django.urls import include, path

urlpatterns = [
    path('', include('countries.urls')),
]


def custom_404(request, exception):
    return JsonResponse({"error": "Endpoint not found"}, status=404)


def custom_500(request):
    return JsonResponse({"error": "Internal server error"}, status=500)


handler404 = "country_snapshots.urls.custom_404"
handler500 = "country_snapshots.urls.custom_500"
