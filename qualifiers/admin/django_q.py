"""
Django-Q models on the grouped admin site, with a task picker for schedules.
"""

from django import forms
from django_q.admin import FailAdmin, ScheduleAdmin, TaskAdmin
from django_q.models import Failure, Schedule, Success, Task

from .site import grouped_admin_site

QUALIFIER_TASKS = [
    ("", "-- Custom task (enter below) --"),
    (
        "qualifiers.tasks.scoring.recalculate_qualified_teams_scores",
        "Recalculate qualified teams scores",
    ),
    (
        "qualifiers.tasks.playoffs.propagate_group_positions",
        "Propagate group positions to playoff guesses",
    ),
]


class ScheduleForm(forms.ModelForm):
    task_selector = forms.ChoiceField(
        choices=QUALIFIER_TASKS,
        required=False,
        label="Qualifier tasks",
        help_text="Pick a task or leave blank to enter a function path below",
    )

    class Meta:
        model = Schedule
        fields = "__all__"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        known = {path for path, _ in QUALIFIER_TASKS if path}
        if self.instance and self.instance.func in known:
            self.fields["task_selector"].initial = self.instance.func

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get("task_selector"):
            cleaned_data["func"] = cleaned_data["task_selector"]
        return cleaned_data


class QualifierScheduleAdmin(ScheduleAdmin):
    form = ScheduleForm
    fieldsets = (
        (None, {"fields": ("name", "task_selector", "func")}),
        ("Schedule", {"fields": ("schedule_type", "repeats", "next_run", "cron")}),
        ("Task Configuration", {"fields": ("hook", "args", "kwargs", "cluster")}),
    )


grouped_admin_site.register(Schedule, QualifierScheduleAdmin)
grouped_admin_site.register(Task, TaskAdmin)
grouped_admin_site.register(Success)
grouped_admin_site.register(Failure, FailAdmin)
