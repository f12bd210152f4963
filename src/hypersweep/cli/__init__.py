"""hypersweep CLI."""
