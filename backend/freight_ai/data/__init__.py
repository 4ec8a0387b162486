"""Static reference tables (world regions, destination hints, Indonesian facilities)."""
