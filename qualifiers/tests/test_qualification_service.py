"""
Tests for the group positions update service.
"""
from datetime import timedelta
from unittest.mock import Mock, patch

from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from qualifiers.conf import QualificationSettings
from qualifiers.errors import ErrorCode, TournamentNotFoundError
from qualifiers.models import GroupPositionPrediction
from qualifiers.models.predictions import GroupPositionPredictionQuerySet
from qualifiers.services.qualification import (
    get_tournament_qualification_config,
    load_user_predictions,
    update_group_positions,
)
from qualifiers.utils.positions import PositionUpdate

from .base import QualifiersDataMixin, full_batch

NO_PROPAGATION = QualificationSettings(propagate_playoff_guesses=False)
DEV_OVERRIDE = QualificationSettings(
    environment="development",
    allow_unlocked_editing_for_development_tournaments=True,
    propagate_playoff_guesses=False,
)


class UpdateGroupPositionsTest(QualifiersDataMixin, TestCase):
    def setUp(self):
        self.tournament = self.create_tournament()
        self.group_a, self.teams_a = self.create_group(self.tournament, "A")
        self.group_b, self.teams_b = self.create_group(self.tournament, "B")
        self.user = self.create_user()

    def update(self, group, updates, **kwargs):
        kwargs.setdefault("settings", NO_PROPAGATION)
        return update_group_positions(
            self.user, group.id, self.tournament.id, updates, **kwargs
        )

    def stored_entries(self, group):
        prediction = GroupPositionPrediction.objects.get(
            user=self.user, tournament=self.tournament, group=group
        )
        return [entry.to_update() for entry in prediction.entries]

    def test_valid_batch_round_trips(self):
        batch = full_batch(list(reversed(self.teams_a)))

        result = self.update(self.group_a, batch)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Successfully updated 4 predictions")
        self.assertEqual(self.stored_entries(self.group_a), batch)

    def test_second_update_replaces_the_row(self):
        self.update(self.group_a, full_batch(self.teams_a))
        batch = full_batch(list(reversed(self.teams_a)))

        self.update(self.group_a, batch)

        self.assertEqual(
            GroupPositionPrediction.objects.filter(user=self.user).count(), 1
        )
        self.assertEqual(self.stored_entries(self.group_a), batch)

    def test_dict_updates_are_accepted(self):
        rows = [update.as_dict() for update in full_batch(self.teams_a)]

        result = self.update(self.group_a, rows)

        self.assertTrue(result.success)

    def test_malformed_update_is_invalid_data(self):
        result = self.update(self.group_a, [{"team_id": self.teams_a[0].id}])

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, ErrorCode.INVALID_DATA)

    def test_string_qualifies_flag_is_invalid_data(self):
        rows = [update.as_dict() for update in full_batch(self.teams_a)]
        rows[2]["qualifies"] = "false"

        result = self.update(self.group_a, rows)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, ErrorCode.INVALID_DATA)
        self.assertFalse(GroupPositionPrediction.objects.exists())

    def test_invalid_flag_keeps_previous_state(self):
        original = full_batch(self.teams_a)
        self.update(self.group_a, original)
        bad = [
            PositionUpdate(team_id=u.team_id, position=u.position, qualifies=False)
            for u in full_batch(list(reversed(self.teams_a)))
        ]

        result = self.update(self.group_a, bad)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, ErrorCode.INVALID_QUALIFICATION_FLAG)
        self.assertEqual(self.stored_entries(self.group_a), original)

    def test_duplicate_positions_never_reach_storage(self):
        batch = full_batch(self.teams_a)
        batch[3] = PositionUpdate(team_id=batch[3].team_id, position=3, qualifies=False)

        with patch.object(GroupPositionPredictionQuerySet, "upsert") as upsert:
            result = self.update(self.group_a, batch)

        self.assertEqual(result.error_code, ErrorCode.DUPLICATE_POSITION)
        upsert.assert_not_called()

    def test_duplicate_teams_never_reach_storage(self):
        batch = full_batch(self.teams_a)
        batch[1] = PositionUpdate(team_id=batch[0].team_id, position=2, qualifies=True)

        with patch.object(GroupPositionPredictionQuerySet, "upsert") as upsert:
            result = self.update(self.group_a, batch)

        self.assertEqual(result.error_code, ErrorCode.DUPLICATE_TEAMS)
        upsert.assert_not_called()

    def test_team_from_another_group(self):
        batch = full_batch(self.teams_a[:3] + [self.teams_b[0]])

        result = self.update(self.group_a, batch)

        self.assertEqual(result.error_code, ErrorCode.INVALID_TEAM_GROUP)
        self.assertIn(str(self.teams_b[0].id), result.message)

    def test_third_place_cap_counts_other_groups(self):
        first = self.update(self.group_a, full_batch(self.teams_a, third_qualifies=True))
        second = self.update(self.group_b, full_batch(self.teams_b, third_qualifies=True))

        self.assertTrue(first.success)
        self.assertEqual(second.error_code, ErrorCode.MAX_THIRD_PLACE_EXCEEDED)
        self.assertFalse(
            GroupPositionPrediction.objects.filter(group=self.group_b).exists()
        )

    def test_resaving_the_same_group_does_not_count_itself(self):
        self.update(self.group_a, full_batch(self.teams_a, third_qualifies=True))

        result = self.update(
            self.group_a, full_batch(list(reversed(self.teams_a)), third_qualifies=True)
        )

        self.assertTrue(result.success)

    def test_reaching_the_cap_exactly_succeeds(self):
        self.tournament.max_third_place_qualifiers = 2
        self.tournament.save()

        self.update(self.group_a, full_batch(self.teams_a, third_qualifies=True))
        result = self.update(self.group_b, full_batch(self.teams_b, third_qualifies=True))

        self.assertTrue(result.success)

    def test_third_place_not_allowed(self):
        self.tournament.allows_third_place_qualification = False
        self.tournament.save()

        result = self.update(self.group_a, full_batch(self.teams_a, third_qualifies=True))

        self.assertEqual(result.error_code, ErrorCode.THIRD_PLACE_NOT_ALLOWED)

    def test_empty_batch_is_a_no_op(self):
        result = self.update(self.group_a, [])

        self.assertTrue(result.success)
        self.assertEqual(result.message, "No predictions to update")
        self.assertFalse(GroupPositionPrediction.objects.exists())

    def test_anonymous_user_is_rejected(self):
        result = update_group_positions(
            AnonymousUser(),
            self.group_a.id,
            self.tournament.id,
            full_batch(self.teams_a),
            settings=NO_PROPAGATION,
        )

        self.assertEqual(result.error_code, ErrorCode.UNAUTHORIZED)

    def test_unauthorized_is_checked_before_the_empty_batch(self):
        result = update_group_positions(
            None, self.group_a.id, self.tournament.id, [], settings=NO_PROPAGATION
        )

        self.assertEqual(result.error_code, ErrorCode.UNAUTHORIZED)

    def test_unknown_tournament(self):
        result = update_group_positions(
            self.user, self.group_a.id, 999999, full_batch(self.teams_a),
            settings=NO_PROPAGATION,
        )

        self.assertEqual(result.error_code, ErrorCode.TOURNAMENT_NOT_FOUND)

    def test_locked_after_deadline(self):
        self.tournament.start_date = timezone.now() - timedelta(days=6)
        self.tournament.save()

        result = self.update(self.group_a, full_batch(self.teams_a))

        self.assertEqual(result.error_code, ErrorCode.TOURNAMENT_LOCKED)

    def test_locked_when_inactive(self):
        self.tournament.is_active = False
        self.tournament.save()

        result = self.update(self.group_a, full_batch(self.teams_a))

        self.assertEqual(result.error_code, ErrorCode.TOURNAMENT_LOCKED)

    def test_dev_override_unlocks_development_tournament(self):
        self.tournament.is_active = False
        self.tournament.dev_only = True
        self.tournament.save()

        result = self.update(
            self.group_a, full_batch(self.teams_a), edit_mode=True, settings=DEV_OVERRIDE
        )

        self.assertTrue(result.success)

    def test_dev_override_requires_edit_mode(self):
        self.tournament.is_active = False
        self.tournament.dev_only = True
        self.tournament.save()

        result = self.update(self.group_a, full_batch(self.teams_a), settings=DEV_OVERRIDE)

        self.assertEqual(result.error_code, ErrorCode.TOURNAMENT_LOCKED)

    def test_dev_override_never_applies_in_production(self):
        self.tournament.is_active = False
        self.tournament.dev_only = True
        self.tournament.save()
        production = QualificationSettings(
            environment="production",
            allow_unlocked_editing_for_development_tournaments=True,
            propagate_playoff_guesses=False,
        )

        result = self.update(
            self.group_a, full_batch(self.teams_a), edit_mode=True, settings=production
        )

        self.assertEqual(result.error_code, ErrorCode.TOURNAMENT_LOCKED)

    def test_storage_failure_is_reported_as_generic_error(self):
        with patch.object(
            GroupPositionPredictionQuerySet,
            "upsert",
            side_effect=DatabaseError("disk full"),
        ):
            with self.assertLogs("qualifiers.services.qualification", level="ERROR"):
                result = self.update(self.group_a, full_batch(self.teams_a))

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, ErrorCode.DATABASE_ERROR)
        self.assertEqual(result.message, "Failed to save predictions. Please try again.")
        self.assertNotIn("disk full", result.message)

    def test_confirmation_runs_after_commit(self):
        on_confirmed = Mock()

        with self.captureOnCommitCallbacks(execute=True):
            self.update(self.group_a, full_batch(self.teams_a), on_confirmed=on_confirmed)

        on_confirmed.assert_called_once_with(
            self.user.pk, self.tournament.pk, self.group_a.pk
        )

    def test_rejected_batch_triggers_nothing(self):
        on_confirmed = Mock()
        self.tournament.is_active = False
        self.tournament.save()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.update(self.group_a, full_batch(self.teams_a), on_confirmed=on_confirmed)

        self.assertEqual(callbacks, [])
        on_confirmed.assert_not_called()

    @patch("qualifiers.tasks.playoffs.async_task")
    def test_playoff_propagation_is_queued_by_default(self, mock_async_task):
        with self.captureOnCommitCallbacks(execute=True):
            self.update(
                self.group_a,
                full_batch(self.teams_a),
                settings=QualificationSettings(propagate_playoff_guesses=True),
            )

        mock_async_task.assert_called_once()
        args = mock_async_task.call_args[0]
        self.assertEqual(args[0], "qualifiers.tasks.playoffs.propagate_group_positions")
        self.assertEqual(args[1:], (self.user.pk, self.tournament.pk, self.group_a.pk))


class LoadUserPredictionsTest(QualifiersDataMixin, TestCase):
    def setUp(self):
        self.tournament = self.create_tournament()
        self.group_a, self.teams_a = self.create_group(self.tournament, "A")
        self.group_b, self.teams_b = self.create_group(self.tournament, "B")
        self.user = self.create_user()

    def test_first_visit_initializes_roster_order(self):
        rows = load_user_predictions(self.user, self.tournament.id)

        self.assertEqual(len(rows), 8)
        group_a_rows = [row for row in rows if row["group_id"] == self.group_a.id]
        self.assertEqual(
            [row["team_id"] for row in group_a_rows], [team.id for team in self.teams_a]
        )
        self.assertEqual(
            [row["predicted_to_qualify"] for row in group_a_rows],
            [True, True, False, False],
        )

    def test_existing_predictions_are_kept(self):
        update_group_positions(
            self.user,
            self.group_a.id,
            self.tournament.id,
            full_batch(list(reversed(self.teams_a))),
            settings=NO_PROPAGATION,
        )

        rows = load_user_predictions(self.user, self.tournament.id)

        self.assertEqual(GroupPositionPrediction.objects.count(), 2)
        first = next(row for row in rows if row["group_id"] == self.group_a.id)
        self.assertEqual(first["team_id"], self.teams_a[3].id)

    def test_unknown_tournament(self):
        with self.assertRaises(TournamentNotFoundError):
            load_user_predictions(self.user, 999999)


class QualificationConfigTest(QualifiersDataMixin, TestCase):
    def test_config_reflects_tournament(self):
        tournament = self.create_tournament(max_third_place_qualifiers=4)

        config = get_tournament_qualification_config(tournament.id)

        self.assertEqual(
            config.as_dict(),
            {"allows_third_place": True, "max_third_place": 4, "is_locked": False},
        )

    def test_locked_five_days_after_start(self):
        tournament = self.create_tournament(
            start_date=timezone.now() - timedelta(days=5, minutes=1)
        )

        self.assertTrue(get_tournament_qualification_config(tournament.id).is_locked)

    def test_unknown_tournament(self):
        with self.assertRaises(TournamentNotFoundError):
            get_tournament_qualification_config(999999)
