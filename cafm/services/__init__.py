"""
Service layer: shared service plumbing and the analytics engine.
"""
