"""HTTP service over the valuation core."""
