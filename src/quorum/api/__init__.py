"""API module for Quorum.

HTTP surface over the survey workflows and the summary engine.
The requesting user is taken from the X-User-Id header; authentication
happens upstream.
"""
