"""Moving averages over per-second aggregates of UDP sample flows."""
