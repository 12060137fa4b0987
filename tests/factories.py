from __future__ import annotations

from worldgrid.game import ledger
from worldgrid.models.structure import Structure
from worldgrid.models.user import User


def make_user(db, username: str = "builder") -> User:
    user = User(username=username, password_hash="not-a-real-hash")
    db.add(user)
    db.commit()
    return user


def put_structure(db, user_id: int, x: int, y: int, structure_type: str = "cottage", **kw) -> Structure:
    """Insert a structure directly, bypassing placement rules."""
    s = Structure(user_id=user_id, structure_type=structure_type, grid_x=x, grid_y=y, **kw)
    db.add(s)
    db.commit()
    return s


def fund(db, user_id: int, **resources) -> None:
    ledger.add(db, user_id, resources)
    db.commit()
