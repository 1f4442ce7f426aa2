#!/usr/bin/env python

"""
    Core module for Libris: record store, catalog and lending

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""
