# Overview: Role policy table mapping each role to the actions it may take.
#
# ANY: allowed regardless of ownership.
# OWN: allowed only on resources the actor owns.
# Actions missing from a role's map are denied. Admins are not listed: they
# may take every defined action regardless of ownership.

ROLE_CUSTOMER = "customer"
ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"

VALID_ROLES = (ROLE_CUSTOMER, ROLE_SELLER, ROLE_ADMIN)

ANY = "ANY"
OWN = "OWN"

ROLE_POLICIES = {
    ROLE_CUSTOMER: {
        "order.create": ANY,
        "order.view": OWN,
        "order.update": OWN,
        "order.cancel": OWN,
        "order_item.manage": OWN,
        "donation.create": ANY,
        "donation.view": OWN,
        "rating.create": ANY,
        "rating.edit": OWN,
        "comment.create": ANY,
        "comment.edit": OWN,
    },
    ROLE_SELLER: {
        "product.submit": OWN,
        "product.edit": OWN,
        "product.view_own": OWN,
    },
}
