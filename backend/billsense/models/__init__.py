"""ORM models. Importing this package registers every table on Base.metadata."""

from billsense.models.invoice import Invoice
from billsense.models.user import User

__all__ = ["Invoice", "User"]
