"""
Command line interface.
"""
