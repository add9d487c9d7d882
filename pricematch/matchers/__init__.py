"""Price <-> station matching and aggregation."""
