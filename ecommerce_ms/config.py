"""
Configuration for the e-commerce service.

All settings are read from environment variables with development defaults.
"""
import os

# Database connection string (SQLite for local development, PostgreSQL in deployment)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ecommerce.db")

# Path prefix for all routes, e.g. "/api" when served behind the admin UI's base URL
API_PREFIX = os.getenv("API_PREFIX", "").rstrip("/")

# Origins allowed to call the API from a browser
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS if origin.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
