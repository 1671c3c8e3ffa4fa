"""
Infrastructure: HTTP client and scheduler.
"""
