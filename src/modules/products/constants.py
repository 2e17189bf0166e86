"""Catalog constants."""

# Products at or below this quantity are flagged as low stock for admins.
LOW_STOCK_THRESHOLD = 5
