"""Schema validation for generated lockfiles."""
