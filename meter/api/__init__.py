"""
meter/api package marker.
"""
