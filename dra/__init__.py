"""
Deferred-Revelation Auction (DRA)

A credible auction protocol over a public broadcast channel:
- Commit / reveal / resolve state machine
- Pluggable commitment backends (hash, Pedersen, non-malleable, range proof, audited)
- Reserve price and collateral derived from the value distribution
- Audit transcript with independently re-derivable receipts
"""

__version__ = "0.1.0"
