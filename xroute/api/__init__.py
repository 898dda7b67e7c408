"""HTTP boundary for the route planner and liquidity oracle."""
