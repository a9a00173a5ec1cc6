"""
meter/schemas package marker.
"""
