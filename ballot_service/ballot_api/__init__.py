"""HTTP service hosting a single ballot."""
