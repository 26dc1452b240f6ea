"""
Application module - Use cases orchestrating the core ports.
"""
