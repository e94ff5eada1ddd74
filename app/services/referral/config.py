"""
Referral system configuration.

Contains constants for the referral graph.
"""

# Depth of the direct inviter link in the closure table
DIRECT_INVITER_DEPTH = 1
