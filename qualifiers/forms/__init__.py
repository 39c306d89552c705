from .qualification import TeamPositionUpdateForm, parse_updates

__all__ = ["TeamPositionUpdateForm", "parse_updates"]
