from django.apps import AppConfig


class BloodConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'blood'

    def ready(self):
        from .compatibility import validate_table

        validate_table()
