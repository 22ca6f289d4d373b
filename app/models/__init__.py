# SQLModel definitions, imported here so Alembic sees every table.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .profile import Profile  # noqa: F401
from .category import Category  # noqa: F401
from .item import Item  # noqa: F401
from .user_access import UserAccess  # noqa: F401
from .access_request import AccessRequest  # noqa: F401
from .subscription import Subscription  # noqa: F401
