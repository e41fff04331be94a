from django.urls import path

from . import views

app_name = "podname"

urlpatterns = [
    path("", views.index, name="index"),
    path("api/convert/", views.convert_api, name="convert"),
]
