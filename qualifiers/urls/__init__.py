from django.urls import include, path

from .core import urlpatterns as core_urlpatterns

app_name = "qualifiers"

urlpatterns = [
    path("", include((core_urlpatterns, "qualifiers_core"))),
]

__all__ = ["urlpatterns"]
