"""Pure domain logic: state diffing and quick-range partitioning."""
