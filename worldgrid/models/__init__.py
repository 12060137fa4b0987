# worldgrid/models/__init__.py
from worldgrid.models.user import User  # noqa: F401
from worldgrid.models.session import SessionToken  # noqa: F401
from worldgrid.models.structure import Structure  # noqa: F401
from worldgrid.models.zone import Zone  # noqa: F401
from worldgrid.models.user_resource import UserResource  # noqa: F401
from worldgrid.models.activity_log import ActivityLog  # noqa: F401
