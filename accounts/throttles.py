# accounts/throttles.py
"""
Rate limiting classes for authentication endpoints.

Rates are configured via settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'].
"""

from rest_framework.throttling import AnonRateThrottle


class RegistrationThrottle(AnonRateThrottle):
    """Rate limit registration attempts per IP."""
    scope = 'registration'


class LoginThrottle(AnonRateThrottle):
    """Rate limit login attempts per IP."""
    scope = 'login'
