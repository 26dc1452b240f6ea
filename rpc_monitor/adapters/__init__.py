"""
Adapters module - Port implementations talking to the outside world.
"""
