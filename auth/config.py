"""
Configuration for the auth module.

The signing secret itself comes from `shortener.config.Settings.secret_key`
and is passed in explicitly; only cookie attributes live here.
"""

COOKIE_NAME = "UserID"

# One year, in seconds
COOKIE_MAX_AGE = 365 * 24 * 60 * 60
