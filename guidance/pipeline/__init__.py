"""Safety pipeline: classify, short-circuit or generate, then decide on escalation."""
