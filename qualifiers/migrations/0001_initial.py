import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("short_name", models.CharField(blank=True, max_length=20)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Tournament",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("slug", models.SlugField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField(blank=True, null=True)),
                ("dev_only", models.BooleanField(default=False, help_text="Development-only tournament, used for content staging.")),
                ("allows_third_place_qualification", models.BooleanField(default=False)),
                ("max_third_place_qualifiers", models.PositiveIntegerField(default=0)),
                ("qualified_team_points", models.IntegerField(blank=True, help_text="Points for a qualified team in any position (default 1).", null=True)),
                ("exact_position_qualified_points", models.IntegerField(blank=True, help_text="Bonus points for an exact position match (default 1).", null=True)),
            ],
            options={
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="TournamentGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_completed", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("letter", models.CharField(max_length=5)),
                ("tournament", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="groups", to="qualifiers.tournament")),
            ],
            options={
                "ordering": ["tournament", "letter"],
                "unique_together": {("tournament", "letter")},
            },
        ),
        migrations.CreateModel(
            name="TournamentGroupTeam",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("final_position", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("qualified_as_third_place", models.BooleanField(default=False)),
                ("group", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="standings", to="qualifiers.tournamentgroup")),
                ("team", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="group_memberships", to="qualifiers.team")),
            ],
            options={
                "ordering": ["group", "id"],
                "unique_together": {("group", "team")},
            },
        ),
        migrations.AddField(
            model_name="tournamentgroup",
            name="teams",
            field=models.ManyToManyField(related_name="tournament_groups", through="qualifiers.TournamentGroupTeam", to="qualifiers.team"),
        ),
        migrations.CreateModel(
            name="GroupPositionPrediction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("team_positions", models.JSONField(blank=True, default=list, help_text="Ordered list of {team_id, predicted_position, predicted_to_qualify}.")),
                ("group", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="predictions", to="qualifiers.tournamentgroup")),
                ("tournament", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="group_predictions", to="qualifiers.tournament")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="group_position_predictions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["tournament", "user", "group"],
                "unique_together": {("user", "tournament", "group")},
            },
        ),
        migrations.CreateModel(
            name="UserTournamentScore",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("qualified_teams_score", models.IntegerField(default=0)),
                ("qualified_teams_correct", models.IntegerField(default=0)),
                ("qualified_teams_exact", models.IntegerField(default=0)),
                ("score_breakdown", models.JSONField(blank=True, default=list, help_text="Detailed breakdown of how points were scored.")),
                ("is_final", models.BooleanField(default=False)),
                ("tournament", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="user_scores", to="qualifiers.tournament")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["tournament", "-qualified_teams_score"],
                "unique_together": {("user", "tournament")},
            },
        ),
    ]
