from .capabilities import PrivilegedStore, ScopedStore, store_for  # noqa: F401
from .collection import Collection  # noqa: F401
from .entities import EntityStore  # noqa: F401
