"""HTTP routes over the repositories."""
