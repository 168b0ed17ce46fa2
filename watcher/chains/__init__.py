"""Chain-specific ledger clients."""
