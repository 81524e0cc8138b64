"""Per-vertex displacement stages."""
