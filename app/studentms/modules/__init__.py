"""
Feature modules live under this package.

Each module owns its routes, models and service functions, while reusing the
platform pieces (config, DB session, CSRF guard).
"""
