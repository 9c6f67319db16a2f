"""Per-pixel, temporal and spatial operations on data cubes."""
