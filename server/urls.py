"""URL configuration.

The repository core is exposed as plain Python operations; only the
Django admin is routed here.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
