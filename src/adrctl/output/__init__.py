"""Output layer — rich console rendering and JSON emission."""
