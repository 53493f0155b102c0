"""
URL configuration for the TalentMatch project.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/matching/', include('matching.urls', namespace='matching')),
]
