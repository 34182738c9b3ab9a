"""
Read-only data access consumed by the analytics engine.
"""
