"""
Admin site with the qualifiers models grouped into sections.
"""

from django.contrib.admin import AdminSite


class GroupedAdminSite(AdminSite):
    """
    Admin site that lists models by section instead of by app:

    - Tournaments (tournaments, groups, teams)
    - Predictions (group position predictions)
    - Scoring (stored user scores)
    - Task Management (django-q)
    """

    site_header = "Qualifiers Administration"
    site_title = "Qualifiers Admin"
    index_title = "Qualification Predictions"

    MODEL_GROUPS = {
        "Tournaments": [
            "qualifiers.tournament",
            "qualifiers.tournamentgroup",
            "qualifiers.team",
        ],
        "Predictions": [
            "qualifiers.grouppositionprediction",
        ],
        "Scoring": [
            "qualifiers.usertournamentscore",
        ],
        "Task Management": [
            "django_q.schedule",
            "django_q.task",
            "django_q.success",
            "django_q.failure",
        ],
    }

    def get_app_list(self, request, app_label=None):
        app_list = super().get_app_list(request, app_label)

        # "app.model" -> model dict
        model_lookup = {}
        for app in app_list:
            for model in app["models"]:
                key = f"{app['app_label']}.{model['object_name'].lower()}"
                model_lookup[key] = model

        grouped_apps = []
        grouped_keys = set()
        for group_name, model_keys in self.MODEL_GROUPS.items():
            grouped_keys.update(model_keys)
            group_models = [model_lookup[key] for key in model_keys if key in model_lookup]
            if group_models:
                grouped_apps.append(
                    {
                        "name": group_name,
                        "app_label": group_name.lower().replace(" ", "_"),
                        "app_url": "#",
                        "has_module_perms": True,
                        "models": group_models,
                    }
                )

        ungrouped_models = [
            model for key, model in model_lookup.items() if key not in grouped_keys
        ]
        if ungrouped_models:
            grouped_apps.append(
                {
                    "name": "Other",
                    "app_label": "other",
                    "app_url": "#",
                    "has_module_perms": True,
                    "models": ungrouped_models,
                }
            )

        return grouped_apps


grouped_admin_site = GroupedAdminSite(name="grouped_admin")
