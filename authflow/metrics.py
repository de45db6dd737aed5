"""
Prometheus metrics for authflow.

- HTTP requests and performance
- Registration, login and second-factor outcomes
- Step token operations
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ============================================================================
# Application Info
# ============================================================================

app_info = Info('authflow', 'Authentication service application info')

# ============================================================================
# HTTP Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0)
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'Number of HTTP requests currently being processed',
    ['method', 'endpoint']
)

# ============================================================================
# Authentication Metrics
# ============================================================================

auth_registrations_total = Counter(
    'auth_registrations_total',
    'Total registration attempts',
    ['status']  # success, email_taken, error
)

auth_login_attempts_total = Counter(
    'auth_login_attempts_total',
    'Total login attempts',
    ['status']  # success, mfa_required, invalid_credentials, unknown_user, error
)

auth_mfa_setups_total = Counter(
    'auth_mfa_setups_total',
    'Total TOTP provisioning attempts',
    ['status']  # success, invalid_token, unknown_user, error
)

auth_mfa_verifications_total = Counter(
    'auth_mfa_verifications_total',
    'Total MFA verification attempts',
    ['status']  # success, invalid_code, invalid_token, unknown_user, error
)

auth_token_operations_total = Counter(
    'auth_token_operations_total',
    'Total step token operations',
    ['operation', 'status']  # operation: mint, validate
)
