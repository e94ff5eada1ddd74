"""
Referral services package.

Contains modular services for the referral graph:
- config: Configuration constants
- graph_manager: Writes to the closure table (roots and joins)
- query_manager: Ancestor / descendant traversal and statistics
"""

from app.services.referral.graph_manager import ReferralGraphManager
from app.services.referral.query_manager import ReferralQueryManager


__all__ = [
    "ReferralGraphManager",
    "ReferralQueryManager",
]
