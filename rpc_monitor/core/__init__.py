"""
Core module - Entities, ports and errors shared by every layer.
"""
