"""Pure team-balancing, pairing, ledger and aggregation logic."""
