# Overview: Authorization policy package.
# Re-exports the action catalog and the pure `can` check.

from .categories import ActionCategory
from .definitions import (
    ACTION_DEFINITIONS,
    PRODUCT_ACTIONS,
    ORDER_ACTIONS,
    DONATION_ACTIONS,
    ORGANIZATION_ACTIONS,
    FEEDBACK_ACTIONS,
)
from .roles import (
    ROLE_CUSTOMER,
    ROLE_SELLER,
    ROLE_ADMIN,
    VALID_ROLES,
    ROLE_POLICIES,
)
from .helpers import (
    can,
    get_all_action_codes,
    get_actions_by_category,
    get_action_definition,
    validate_action_code,
)

__all__ = [
    "ActionCategory",
    "ACTION_DEFINITIONS",
    "PRODUCT_ACTIONS",
    "ORDER_ACTIONS",
    "DONATION_ACTIONS",
    "ORGANIZATION_ACTIONS",
    "FEEDBACK_ACTIONS",
    "ROLE_CUSTOMER",
    "ROLE_SELLER",
    "ROLE_ADMIN",
    "VALID_ROLES",
    "ROLE_POLICIES",
    "can",
    "get_all_action_codes",
    "get_actions_by_category",
    "get_action_definition",
    "validate_action_code",
]
