"""
HTTP API for imagemanip.
"""
