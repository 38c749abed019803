"""Pure money math and the oldest-first allocation planner."""
