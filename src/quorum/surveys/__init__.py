"""Survey workflows.

Validates requests, enforces ownership and lifecycle rules, and writes
through the repository. Summaries live in quorum.aggregation.
"""
