"""HTTP API for the Recipe Planner."""
