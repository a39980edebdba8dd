"""
URL configuration for country_cache project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
import logging

from django.urls import path, include
from django.http import JsonResponse

logger = logging.getLogger(__name__)

urlpatterns = [
    path('', include('countries.urls'))
]


def custom_404(request, exception):
    return JsonResponse({"error": "Endpoint not found, try /records or /status"}, status=404)


def custom_500(request):
    logger.error("Unhandled error while serving %s", request.path)
    return JsonResponse({"error": "Internal server error"}, status=500)


handler404 = "country_cache.urls.custom_404"
handler500 = "country_cache.urls.custom_500"
