"""
Transport and reporting utilities.
"""
