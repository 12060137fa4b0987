# worldgrid/game/errors.py
from __future__ import annotations


class WorldError(Exception):
    """Base for domain failures; status_code is what the HTTP layer answers with."""

    status_code: int = 400

    def __init__(self, message: str, **detail) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        d = {"success": False, "message": self.message}
        if self.detail:
            d["detail"] = self.detail
        return d


class InvalidPosition(WorldError):
    status_code = 400


class InsufficientResources(WorldError):
    status_code = 400


class UnknownStructureType(WorldError):
    status_code = 400


class InvalidEvent(WorldError):
    status_code = 400


class NotFound(WorldError):
    status_code = 404


class Unauthorized(WorldError):
    status_code = 403


class PersistenceFailure(WorldError):
    status_code = 500


class PlacementConflict(PersistenceFailure):
    # Unique (grid_x, grid_y) violated at write time
    status_code = 409
