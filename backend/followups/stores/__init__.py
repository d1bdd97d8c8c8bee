"""SQL-backed stores for users, tokens and vehicles."""
from .filters import Filters, Metadata, calculate_metadata
from .tokens import IssuedToken, TokenStore
from .users import UserStore
from .vehicles import SORT_SAFELIST, VehicleStore
from .versioning import update_versioned

__all__ = [
    "Filters",
    "IssuedToken",
    "Metadata",
    "SORT_SAFELIST",
    "TokenStore",
    "UserStore",
    "VehicleStore",
    "calculate_metadata",
    "update_versioned",
]
