from django.apps import AppConfig


class PodnameConfig(AppConfig):
    name = "podname"
    verbose_name = "Task ID to Pod Name Converter"
