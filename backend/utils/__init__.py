"""
Utility helpers: configuration, response cleaning and the error taxonomy.
"""
