# Overview: Action category constants for grouping related actions.


class ActionCategory:
    """Action categories for organization and display."""
    PRODUCTS = "PRODUCTS"
    ORDERS = "ORDERS"
    DONATIONS = "DONATIONS"
    ORGANIZATIONS = "ORGANIZATIONS"
    FEEDBACK = "FEEDBACK"
