"""Portfolio pipeline steps."""
