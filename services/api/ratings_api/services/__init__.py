"""Business logic services.

Services contain all business logic and are called by routes.
Services accept the database session explicitly and raise ServiceError
subclasses instead of HTTP exceptions.
"""
