"""
Request throttles.

Reads share the global anonymous rate; state-changing endpoints are
additionally held to the stricter ``mutation`` rate.
"""
from rest_framework.permissions import SAFE_METHODS
from rest_framework.throttling import SimpleRateThrottle


class MutationRateThrottle(SimpleRateThrottle):
    scope = 'mutation'

    def allow_request(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):
        return self.cache_format % {'scope': self.scope, 'ident': self.get_ident(request)}
