"""
Management command to recalculate stored qualified teams scores.

Usage:
    python manage.py calculate_qualified_teams_scores <tournament_id>
    python manage.py calculate_qualified_teams_scores <tournament_id> --user <user_id>
    python manage.py calculate_qualified_teams_scores <tournament_id> --async
"""

from django.core.management.base import BaseCommand, CommandError

from qualifiers.models import Tournament
from qualifiers.services.scoring import (
    calculate_and_store_qualified_teams_scores,
    calculate_user_qualified_teams_score,
)
from qualifiers.tasks.scoring import schedule_score_recalculation


class Command(BaseCommand):
    help = """
    Recalculate the qualified teams score of every user with group predictions
    in a tournament. Stored scores are reset first, so running it twice gives
    the same totals. With --user, one user's score is calculated and printed
    without storing anything.
    """

    def add_arguments(self, parser):
        parser.add_argument("tournament_id", type=int, help="Tournament ID to score")
        parser.add_argument(
            "--user",
            type=int,
            dest="user_id",
            help="Only calculate (and print) the score of this user, nothing is saved",
        )
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the recalculation on the django-q cluster",
        )

    def handle(self, *args, **options):
        tournament_id = options["tournament_id"]

        try:
            tournament = Tournament.objects.get(id=tournament_id)
        except Tournament.DoesNotExist:
            raise CommandError(f"Tournament with ID {tournament_id} does not exist")

        if options["user_id"] is not None:
            self._show_user_score(tournament, options["user_id"])
            return

        if options["run_async"]:
            schedule_score_recalculation(tournament)
            self.stdout.write(
                self.style.SUCCESS(f"Queued score recalculation for {tournament.name}")
            )
            return

        self.stdout.write(f"\nCalculating qualified teams scores for: {tournament.name}")
        summary = calculate_and_store_qualified_teams_scores(tournament.id)

        self.stdout.write("\n" + "=" * 60)
        self.stdout.write("Scoring Summary:")
        self.stdout.write(f"  {summary['message']}")
        self.stdout.write(
            self.style.SUCCESS(f"  Users processed: {summary['users_processed']}")
        )
        self.stdout.write(f"  Total score sum: {summary['total_score_sum']}")
        if summary["errors"]:
            self.stdout.write(self.style.ERROR(f"  Failed: {len(summary['errors'])}"))
            for error in summary["errors"]:
                self.stdout.write(self.style.ERROR(f"    {error}"))
        self.stdout.write("=" * 60 + "\n")

    def _show_user_score(self, tournament, user_id):
        result = calculate_user_qualified_teams_score(user_id, tournament.id)
        if not result["success"]:
            raise CommandError(result["message"])

        self.stdout.write(f"\nUser {user_id} in {tournament.name}:")
        for group in result["breakdown"]:
            self.stdout.write(f"  {group['group_name']}")
            for team in group["teams"]:
                self.stdout.write(
                    f"    {team['team_name']}: predicted {team['predicted_position']}, "
                    f"actual {team['actual_position'] or '-'} -> "
                    f"{team['points_awarded']} ({team['reason']})"
                )
        self.stdout.write(self.style.SUCCESS(f"Total: {result['score']}"))
