"""HTTP surface for the tournament engine."""
