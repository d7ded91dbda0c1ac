"""Business logic service layer.

This package groups higher-level operations that coordinate multiple models or
talk to external services. Keeping business logic out of route handlers makes
it easier to test and maintain.
"""

from services.user_service import (
    create_user,
    create_unverified_user,
    verify_login,
)  # noqa: F401
from services.coffee_service import (
    create_coffee,
    get_coffee_list_items_paginated,
)  # noqa: F401
from services.stats_service import compute_statistics  # noqa: F401


__all__ = [
    "create_user",
    "create_unverified_user",
    "verify_login",
    "create_coffee",
    "get_coffee_list_items_paginated",
    "compute_statistics",
]
