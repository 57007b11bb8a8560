"""Core primitives: errors, failover and decimal aggregation."""
