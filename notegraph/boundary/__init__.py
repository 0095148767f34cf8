"""
Boundary layer: primary store, vector index and text generator adapters.
"""
