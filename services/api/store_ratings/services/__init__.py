"""Business logic services.

Services contain all business logic and are called by routes.
Each service function takes the persistence gateway explicitly.
"""
