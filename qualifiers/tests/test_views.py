"""
Tests for the JSON endpoints.
"""
import json
from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from qualifiers.conf import QualificationSettings
from qualifiers.models import GroupPositionPrediction

from .base import QualifiersDataMixin, full_batch


class QualificationViewsTest(QualifiersDataMixin, TestCase):
    def setUp(self):
        self.tournament = self.create_tournament()
        self.group_a, self.teams_a = self.create_group(self.tournament, "A")
        self.group_b, self.teams_b = self.create_group(self.tournament, "B")
        self.user = self.create_user()
        self.positions_url = (
            f"/tournaments/{self.tournament.id}/groups/{self.group_a.id}/positions/"
        )

    def post_updates(self, payload):
        return self.client.post(
            self.positions_url, data=json.dumps(payload), content_type="application/json"
        )

    def batch_payload(self, teams=None, **kwargs):
        rows = [update.as_dict() for update in full_batch(teams or self.teams_a, **kwargs)]
        return {"updates": rows}

    def test_update_requires_login(self):
        response = self.post_updates(self.batch_payload())

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")

    def test_update_saves_group(self):
        self.client.force_login(self.user)

        response = self.post_updates(self.batch_payload(list(reversed(self.teams_a))))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"success": True, "message": "Successfully updated 4 predictions"},
        )
        prediction = GroupPositionPrediction.objects.get(user=self.user)
        self.assertEqual(prediction.entries[0].team_id, self.teams_a[3].id)

    def test_invalid_json(self):
        self.client.force_login(self.user)

        response = self.client.post(
            self.positions_url, data="{not json", content_type="application/json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "INVALID_DATA")

    def test_row_without_qualifies_flag(self):
        self.client.force_login(self.user)
        payload = self.batch_payload()
        del payload["updates"][0]["qualifies"]

        response = self.post_updates(payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "INVALID_DATA")

    def test_non_numeric_position(self):
        self.client.force_login(self.user)
        payload = self.batch_payload()
        payload["updates"][0]["position"] = "first"

        response = self.post_updates(payload)

        self.assertEqual(response.status_code, 400)
        self.assertIn("position", response.json()["message"])

    def test_validation_error_status(self):
        self.client.force_login(self.user)

        response = self.post_updates(self.batch_payload(self.teams_a[:3] + [self.teams_b[0]]))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "INVALID_TEAM_GROUP")

    def test_locked_tournament_status(self):
        self.client.force_login(self.user)
        self.tournament.start_date = timezone.now() - timedelta(days=10)
        self.tournament.save()

        response = self.post_updates(self.batch_payload())

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "TOURNAMENT_LOCKED")

    def test_unknown_tournament_status(self):
        self.client.force_login(self.user)

        response = self.client.post(
            f"/tournaments/999999/groups/{self.group_a.id}/positions/",
            data=json.dumps(self.batch_payload()),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 404)

    def test_update_only_accepts_post(self):
        self.client.force_login(self.user)

        response = self.client.get(self.positions_url)

        self.assertEqual(response.status_code, 405)

    def test_qualification_config(self):
        response = self.client.get(
            f"/tournaments/{self.tournament.id}/qualification-config/"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"allows_third_place": True, "max_third_place": 1, "is_locked": False},
        )

    def test_qualification_config_unknown_tournament(self):
        response = self.client.get("/tournaments/999999/qualification-config/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "TOURNAMENT_NOT_FOUND")

    def test_predictions_are_initialized_on_first_visit(self):
        self.client.force_login(self.user)

        response = self.client.get(
            f"/tournaments/{self.tournament.id}/qualified-teams/predictions/"
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data["predictions"]), 8)
        self.assertFalse(data["config"]["is_locked"])
        self.assertEqual(GroupPositionPrediction.objects.filter(user=self.user).count(), 2)

    def test_predictions_require_login(self):
        response = self.client.get(
            f"/tournaments/{self.tournament.id}/qualified-teams/predictions/"
        )

        self.assertEqual(response.status_code, 401)

    def test_edit_mode_unlocks_development_tournament(self):
        self.client.force_login(self.user)
        self.tournament.is_active = False
        self.tournament.dev_only = True
        self.tournament.save()
        dev_settings = QualificationSettings(
            environment="development",
            allow_unlocked_editing_for_development_tournaments=True,
        )
        url = f"/tournaments/{self.tournament.id}/qualified-teams/predictions/"

        with patch("qualifiers.views.qualification.qualification_settings", dev_settings):
            locked = self.client.get(url).json()
            unlocked = self.client.get(url, {"edit_mode": "true"}).json()

        self.assertTrue(locked["config"]["is_locked"])
        self.assertFalse(unlocked["config"]["is_locked"])

    def test_score(self):
        self.client.force_login(self.user)
        self.post_updates(self.batch_payload())
        self.group_a.record_final_positions(
            {team.id: index + 1 for index, team in enumerate(self.teams_a)}
        )

        response = self.client.get(
            f"/tournaments/{self.tournament.id}/qualified-teams/score/"
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["total_score"], 4)
        self.assertEqual(data["breakdown"][0]["group_name"], "Group A")
        self.assertEqual(data["breakdown"][0]["teams"][0]["reason"], "exact_match")
