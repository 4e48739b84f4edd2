"""StudySprint: timed coding-practice sprints."""
