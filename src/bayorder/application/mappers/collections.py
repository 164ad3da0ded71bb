from __future__ import annotations

CAFES = "cafes"
MENU_ITEMS = "menuItems"
ORDERS = "orders"
REQUESTS = "requests"
IDEMPOTENCY_KEYS = "idempotencyKeys"
ACCOUNTS = "accounts"
