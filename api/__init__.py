"""
API module - request normalization boundary.

Turns loosely-spelled request bodies into typed engine commands and
checks the admin credential. HTTP routing lives outside this service.
"""
