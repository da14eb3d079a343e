"""
Shared helpers for the originality engine and its command-line interface.
"""
