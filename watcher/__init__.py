"""Lending-protocol liquidation and arbitrage watcher."""
