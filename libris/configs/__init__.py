#!/usr/bin/env python

"""
    Configurations for Libris

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
HOST = os.environ.get('LIBRIS_HOST', 'localhost')
PORT = int(os.environ.get('LIBRIS_PORT', 5000))
WORKERS = int(os.environ.get('LIBRIS_WORKERS', 1))
DEBUG = bool(int(os.environ.get('LIBRIS_DEBUG', 0)))
LOG_LEVEL = os.environ.get('LIBRIS_LOG_LEVEL', 'info')
ALLOWED_ORIGINS = os.environ.get(
    'LIBRIS_ALLOWED_ORIGINS',
    'http://localhost:8080,http://127.0.0.1:8080'
).split(',')

# Session signing
SEED = os.environ.get('LIBRIS_SEED', 'change-me-in-production')
SESSION_TTL = int(os.environ.get('LIBRIS_SESSION_TTL', 604800))

# Lending rules
LOAN_PERIOD_DAYS = 14
LOAN_LIMIT = 5

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'library_repository'),
}

# Database configuration
DB_URI = os.environ.get('LIBRIS_DB_URI') or (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

__all__ = [
    'HOST', 'PORT', 'DEBUG', 'OPTIONS', 'DB_URI', 'DB_CONFIG', 'TESTING',
    'SEED', 'SESSION_TTL', 'LOAN_PERIOD_DAYS', 'LOAN_LIMIT', 'ALLOWED_ORIGINS',
]
