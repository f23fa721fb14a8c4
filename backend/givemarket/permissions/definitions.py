# Overview: All action definitions organized by category.
# Each action is defined as: (code, name, description, category)

from .categories import ActionCategory


# -- PRODUCTS --

PRODUCT_ACTIONS = [
    (
        "product.create",
        "Create Product",
        "Create a draft product on behalf of a seller",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.submit",
        "Submit Product",
        "Submit a draft or rejected product for approval",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.edit",
        "Edit Product",
        "Edit product details (decided products return to draft)",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.review",
        "Review Product",
        "Approve or reject a product pending approval",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.toggle_activation",
        "Toggle Product Activation",
        "Suspend or reactivate an approved product",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.delete",
        "Delete Product",
        "Soft-delete draft or rejected products, or hard-delete any product",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.view_own",
        "View Own Products",
        "List products owned by a seller in every approval state",
        ActionCategory.PRODUCTS,
    ),
    (
        "product.view_all",
        "View All Products",
        "List products in every approval state and view catalog statistics",
        ActionCategory.PRODUCTS,
    ),
]


# -- ORDERS --

ORDER_ACTIONS = [
    (
        "order.create",
        "Create Order",
        "Place a new order",
        ActionCategory.ORDERS,
    ),
    (
        "order.view",
        "View Order",
        "View an order and its items",
        ActionCategory.ORDERS,
    ),
    (
        "order.update",
        "Update Order",
        "Partially update amount, status, payment status or transaction id",
        ActionCategory.ORDERS,
    ),
    (
        "order.cancel",
        "Cancel Order",
        "Cancel a pending, unpaid order",
        ActionCategory.ORDERS,
    ),
    (
        "order.manage",
        "Manage Orders",
        "Admin order operations: any update, payment status, delete, statistics",
        ActionCategory.ORDERS,
    ),
    (
        "order_item.manage",
        "Manage Order Items",
        "Add or remove items on an order",
        ActionCategory.ORDERS,
    ),
]


# -- DONATIONS --

DONATION_ACTIONS = [
    (
        "donation.create",
        "Create Donation",
        "Pledge a direct or purchase-linked donation",
        ActionCategory.DONATIONS,
    ),
    (
        "donation.view",
        "View Donation",
        "View a donation",
        ActionCategory.DONATIONS,
    ),
    (
        "donation.manage",
        "Manage Donations",
        "Confirm, fail, list and remove donations",
        ActionCategory.DONATIONS,
    ),
]


# -- ORGANIZATIONS --

ORGANIZATION_ACTIONS = [
    (
        "organization.manage",
        "Manage Organizations",
        "Create, edit, delete, verify and reject organizations",
        ActionCategory.ORGANIZATIONS,
    ),
]


# -- FEEDBACK --

FEEDBACK_ACTIONS = [
    (
        "rating.create",
        "Rate Product",
        "Rate a public product once",
        ActionCategory.FEEDBACK,
    ),
    (
        "rating.edit",
        "Edit Rating",
        "Change or remove a rating",
        ActionCategory.FEEDBACK,
    ),
    (
        "rating.view_all",
        "View All Ratings",
        "List every rating and view any rating by id",
        ActionCategory.FEEDBACK,
    ),
    (
        "comment.create",
        "Comment on Product",
        "Post a comment on a public product",
        ActionCategory.FEEDBACK,
    ),
    (
        "comment.edit",
        "Edit Comment",
        "Change or remove a comment",
        ActionCategory.FEEDBACK,
    ),
]


# Combined list of all actions (preserves original ordering)
ACTION_DEFINITIONS = (
    PRODUCT_ACTIONS
    + ORDER_ACTIONS
    + DONATION_ACTIONS
    + ORGANIZATION_ACTIONS
    + FEEDBACK_ACTIONS
)
