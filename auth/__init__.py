"""
Auth package for the shortener API.

Provides cookie-based user identity: every client gets an opaque user id in a
signed `UserID` cookie, which the storage layer uses as the owner of the links
it creates. There are no accounts or passwords.
"""
