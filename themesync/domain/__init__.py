"""
Domain layer - business logic
"""
