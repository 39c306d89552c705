from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List


@dataclass(frozen=True)
class PositionUpdate:
    """One row of a group batch as submitted by the client."""

    team_id: int
    position: int
    qualifies: bool

    def to_entry(self) -> "TeamPositionEntry":
        return TeamPositionEntry(
            team_id=self.team_id,
            predicted_position=self.position,
            predicted_to_qualify=self.qualifies,
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TeamPositionEntry:
    """One team of a stored group prediction."""

    team_id: int
    predicted_position: int
    predicted_to_qualify: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamPositionEntry":
        return cls(
            team_id=data["team_id"],
            predicted_position=data["predicted_position"],
            predicted_to_qualify=bool(data.get("predicted_to_qualify", False)),
        )

    def to_update(self) -> PositionUpdate:
        return PositionUpdate(
            team_id=self.team_id,
            position=self.predicted_position,
            qualifies=self.predicted_to_qualify,
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def entries_to_json(entries: Iterable[TeamPositionEntry]) -> List[Dict[str, Any]]:
    return [entry.as_dict() for entry in entries]


def entries_from_json(data) -> List[TeamPositionEntry]:
    return [TeamPositionEntry.from_dict(item) for item in data or []]
