"""
Order Kernel

The order lifecycle and inventory/report engine of a B2B order-management
backend:
- Daily sequential order codes from locked counter rows
- Order state machine with approval/rejection authority
- Stock computed on demand from order lines (no stored balances)
- Append-only sale history for every order mutation
"""

__version__ = "0.1.0"
