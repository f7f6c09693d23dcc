"""
                Restaurant Ordering Backend

Customers, a curated menu, and orders tracked through a status lifecycle,
with derived totals kept consistent by transactional writes.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
