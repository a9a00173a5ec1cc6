"""
meter/services package marker.
"""
