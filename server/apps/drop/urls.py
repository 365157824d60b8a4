"""URL routes for drop app."""

from django.urls import path

from server.apps.drop.views import files_endpoint

app_name = 'drop'

urlpatterns = [
    path('files/', files_endpoint, name='files'),
]
