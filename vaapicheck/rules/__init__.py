"""Check definitions, classification and cross-checks."""
