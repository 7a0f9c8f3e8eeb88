"""
infrastructure.catalog - The e-commerce collection models.

Declares users, products and orders for the model registry. Fields
covered by a single-field index in the database are marked index=True so
the agent can prefer them in filters.
"""

from __future__ import annotations

from datetime import datetime

from application.services.model_registry import ModelRegistry

MEMBERSHIP_LEVELS = ["bronze", "silver", "gold", "platinum"]
ORDER_STATUSES = [
    "pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "refunded",
]
PAYMENT_METHODS = [
    "credit_card", "debit_card", "paypal", "bank_transfer", "cash_on_delivery",
]
PAYMENT_STATUSES = ["pending", "completed", "failed", "refunded"]


USER_FIELDS = {
    "name": {"type": str, "required": True},
    "email": {"type": str, "required": True, "unique": True, "index": True},
    "age": {"type": int, "required": True, "min": 13, "max": 120},
    "city": {"type": str, "required": True},
    "country": {"type": str, "required": True},
    "joinedAt": {"type": datetime, "default": datetime.now, "index": True},
    "preferences": {
        "categories": {"type": [str], "default": []},
        "priceRange": {
            "min": {"type": float, "default": 0},
            "max": {"type": float, "default": 10000},
        },
    },
    "isActive": {"type": bool, "default": True},
    "totalOrders": {"type": int, "default": 0},
    "totalSpent": {"type": float, "default": 0, "index": True},
    "membershipLevel": {
        "type": str, "enum": MEMBERSHIP_LEVELS, "default": "bronze", "index": True,
    },
}

PRODUCT_FIELDS = {
    "name": {"type": str, "required": True},
    "description": {"type": str, "required": True},
    "category": {"type": str, "required": True},
    "subcategory": {"type": str, "required": True},
    "price": {"type": float, "required": True, "min": 0, "index": True},
    "originalPrice": {"type": float, "required": True, "min": 0},
    "discount": {"type": float, "default": 0, "min": 0, "max": 100},
    "brand": {"type": str, "required": True, "index": True},
    "inStock": {"type": bool, "default": True, "index": True},
    "stockQuantity": {"type": int, "default": 0, "min": 0},
    "ratings": {
        "average": {"type": float, "default": 0, "min": 0, "max": 5, "index": True},
        "count": {"type": int, "default": 0, "min": 0},
    },
    "features": {"type": [str], "default": []},
    "tags": {"type": [str], "default": [], "index": True},
    "specifications": {"type": "Mixed", "default": {}},
    "images": {"type": [str], "default": []},
    "isActive": {"type": bool, "default": True},
    "salesCount": {"type": int, "default": 0, "min": 0, "index": True},
}

ORDER_FIELDS = {
    "user": {"type": "ObjectId", "ref": "User", "required": True, "index": True},
    "orderNumber": {"type": str, "required": True, "unique": True, "index": True},
    "items": [
        {
            "product": {"type": "ObjectId", "ref": "Product", "required": True},
            "quantity": {"type": int, "required": True, "min": 1},
            "price": {"type": float, "required": True, "min": 0},
            "discount": {"type": float, "default": 0, "min": 0},
        },
    ],
    "totalAmount": {"type": float, "required": True, "min": 0},
    "discountAmount": {"type": float, "default": 0, "min": 0},
    "finalAmount": {"type": float, "required": True, "min": 0, "index": True},
    "status": {"type": str, "enum": ORDER_STATUSES, "default": "pending", "index": True},
    "paymentMethod": {"type": str, "enum": PAYMENT_METHODS, "required": True},
    "paymentStatus": {
        "type": str, "enum": PAYMENT_STATUSES, "default": "pending", "index": True,
    },
    "shippingAddress": {
        "street": {"type": str, "required": True},
        "city": {"type": str, "required": True},
        "state": {"type": str, "required": True},
        "country": {"type": str, "required": True},
        "zipCode": {"type": str, "required": True},
    },
    "estimatedDelivery": {"type": datetime, "required": True, "index": True},
    "actualDelivery": {"type": datetime},
    "customerNotes": {"type": str},
    "adminNotes": {"type": str},
}


def build_commerce_registry() -> ModelRegistry:
    """Registry holding users, products and orders, in that order."""
    registry = ModelRegistry()
    registry.register(
        "users", USER_FIELDS, model_name="User", aliases=("Users",), timestamps=True,
    )
    registry.register(
        "products", PRODUCT_FIELDS, model_name="Product", aliases=("Products",), timestamps=True,
    )
    registry.register(
        "orders", ORDER_FIELDS, model_name="Order", aliases=("Orders",), timestamps=True,
    )
    return registry
