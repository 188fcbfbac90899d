"""DRA core: distributions, collateral, commitments and the auction engine."""
