#!/usr/bin/env python3
"""
Serenity version information
"""

__version__ = "1.0.0"
__title__ = "Serenity"
__description__ = "Serenity - wellness journal and support chat"
__license__ = "MIT"

RELEASE_DATE = "2026-10-19"


def get_version_info():
    """Return version information as a dict"""
    return {
        "version": __version__,
        "title": __title__,
        "license": __license__,
        "release_date": RELEASE_DATE
    }
