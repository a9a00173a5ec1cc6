"""
meter package marker.
"""
