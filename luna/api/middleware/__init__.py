"""
Request-level middleware and guards.
"""
