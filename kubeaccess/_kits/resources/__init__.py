"""
Typed facades of the most common resource kinds, built on the generic client.
"""
