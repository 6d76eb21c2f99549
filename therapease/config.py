"""
Runtime configuration for Therapease, read from the environment.

Development defaults keep the service runnable against a local SQLite file
with no extra setup. Production deployments must set JWT_SECRET.
"""

import os

THERAPEASE_ENV = os.getenv("THERAPEASE_ENV", "development")
IS_PRODUCTION = THERAPEASE_ENV == "production"

# Database URL from environment or default to SQLite for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./therapease.db")

# For PostgreSQL in production, ensure proper driver
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg2://", 1)

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Create tables on startup (development convenience; production uses alembic)
AUTO_CREATE_TABLES = os.getenv(
    "AUTO_CREATE_TABLES", "false" if IS_PRODUCTION else "true"
).lower() == "true"

JWT_SECRET = os.getenv("JWT_SECRET", "therapease-dev-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 30)))

COOKIE_NAME = "token"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true" if IS_PRODUCTION else "false").lower() == "true"

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@therapease.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin123456")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin User")
