"""Store subsystem: catalog cache, cart reconciliation and the store controller."""
