from django.urls import path
from . import views


urlpatterns = [
    # GET /status → Global system status summary
    path('status', views.get_status, name='get_status'),
    # POST /refresh → Fetch and refresh all country data
    path('refresh', views.refresh_countries, name='refresh_countries'),
    # GET /artifact → Serve generated summary image
    path('artifact', views.get_summary_image, name='get_summary_image'),
    # GET /records → List countries (optional filters)
    path('records', views.list_countries, name='list_countries'),
    # GET or DELETE /records/<name> → Country detail or delete
    path('records/<str:name>', views.country_detail, name='country_detail'),

    # /countries routes, same views
    path('countries/refresh', views.refresh_countries),
    path('countries/image', views.get_summary_image),
    path('countries', views.list_countries),
    path('countries/<str:name>', views.country_detail),
]
