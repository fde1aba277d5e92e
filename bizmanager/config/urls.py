"""
URL configuration for the bizmanager project.

All API routes live under /api/v1/; the Django admin is at /admin/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Bizmanager Admin Panel"
admin.site.site_title = "Bizmanager Admin Portal"
admin.site.index_title = "Catalog and account administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('bizmanager.core.urls')),
    path('api/v1/', include('bizmanager.catalog.urls')),
]
