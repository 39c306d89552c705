from django import forms

from ..errors import InvalidDataError
from ..utils.positions import PositionUpdate


class TeamPositionUpdateForm(forms.Form):
    """One ``{team_id, position, qualifies}`` row of a group batch."""

    team_id = forms.IntegerField()
    position = forms.IntegerField()
    qualifies = forms.BooleanField(required=False)

    def to_update(self) -> PositionUpdate:
        return PositionUpdate(
            team_id=self.cleaned_data["team_id"],
            position=self.cleaned_data["position"],
            qualifies=self.cleaned_data["qualifies"],
        )


def _row_data(row):
    if not isinstance(row, dict):
        raise InvalidDataError(f"Malformed position update: {row!r}")
    if "qualifies" not in row:
        raise InvalidDataError("Each update must state whether the team qualifies")
    qualifies = row["qualifies"]
    if not isinstance(qualifies, bool):
        raise InvalidDataError(f"Invalid qualifies flag: {qualifies!r}")
    return {
        "team_id": row.get("team_id"),
        "position": row.get("position"),
        "qualifies": qualifies,
    }


def parse_updates(rows):
    """
    Coerce a decoded JSON payload into ``PositionUpdate`` objects.

    Raises:
        InvalidDataError: if the payload or any row is malformed
    """
    if not isinstance(rows, list):
        raise InvalidDataError("updates must be a list")

    updates = []
    for index, row in enumerate(rows):
        form = TeamPositionUpdateForm(data=_row_data(row))
        if not form.is_valid():
            errors = "; ".join(
                f"{field}: {', '.join(messages)}"
                for field, messages in form.errors.items()
            )
            raise InvalidDataError(f"Invalid update at index {index}: {errors}")
        updates.append(form.to_update())
    return updates
