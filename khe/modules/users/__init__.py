"""
User Management Module

Account registration, token authentication and user administration:
- api: REST API endpoints
- auth: Authentication and role checks
- domain: Domain model, validation and password helpers
- repositories: Data access
- services: Business logic
"""
