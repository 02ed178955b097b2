"""
Unit test fixtures. Pure functions and transient model instances; no DB.
"""
