"""
Domain and wire models
"""
