from __future__ import annotations

from typing import NewType

CafeId = NewType("CafeId", str)
MenuItemId = NewType("MenuItemId", str)
TableId = NewType("TableId", str)
OrderId = NewType("OrderId", str)
ServiceRequestId = NewType("ServiceRequestId", str)
UserId = NewType("UserId", str)
