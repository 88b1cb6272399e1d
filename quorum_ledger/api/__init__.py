"""HTTP API for execution hosts."""
