"""Progress ledger: per-user video completions."""
