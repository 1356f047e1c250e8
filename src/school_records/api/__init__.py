"""
HTTP and persistence layer: SQLAlchemy models, services and FastAPI routes
"""
