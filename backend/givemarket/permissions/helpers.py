# Overview: Pure policy lookups; no database or request access.

from .definitions import ACTION_DEFINITIONS
from .roles import ANY, OWN, ROLE_ADMIN, ROLE_POLICIES


def get_all_action_codes():
    """Get list of all action codes."""
    return [action[0] for action in ACTION_DEFINITIONS]


def get_actions_by_category(category):
    """Get all actions in a category."""
    return [action for action in ACTION_DEFINITIONS if action[3] == category]


def get_action_definition(code):
    """Get full definition for an action code."""
    for action in ACTION_DEFINITIONS:
        if action[0] == code:
            return {
                "code": action[0],
                "name": action[1],
                "description": action[2],
                "category": action[3],
            }
    return None


def validate_action_code(code):
    """Check if an action code is valid."""
    return code in get_all_action_codes()


def can(role: str | None, action: str, is_owner: bool = False) -> bool:
    """
    Decide whether `role` may take `action`.

    Admins bypass ownership for every defined action. Other roles need an
    entry in ROLE_POLICIES; OWN entries additionally require is_owner.
    Unknown roles and unknown actions are denied.
    """
    if not validate_action_code(action):
        return False
    if role == ROLE_ADMIN:
        return True

    rule = ROLE_POLICIES.get(role, {}).get(action)
    if rule == ANY:
        return True
    if rule == OWN:
        return bool(is_owner)
    return False
