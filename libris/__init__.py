#!/usr/bin/env python

"""
    Libris, a small library catalog and lending web application

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

__version__ = '0.1.0'
