"""
Test tree levels, request merging and dispatch.
"""
