"""CarHire booking engine."""
