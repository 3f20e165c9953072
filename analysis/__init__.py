"""Time-bucketed revenue, expense and profit analysis."""
