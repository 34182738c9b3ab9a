"""
Pydantic schemas for maintenance analytics.
"""
