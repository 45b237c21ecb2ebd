"""
User-facing messages for auth provider error codes
"""

from typing import Optional

AUTH_ERROR_MESSAGES = {
    "email-already-in-use": "This email is already registered. Try logging in.",
    "invalid-email": "Please enter a valid email address.",
    "weak-password": "Password must be at least 6 characters.",
    "user-not-found": "No account found with this email.",
    "wrong-password": "Incorrect password. Please try again.",
    "invalid-credential": "Incorrect email or password. Please try again.",
    "too-many-requests": "Too many attempts. Please wait a moment.",
    "network-request-failed": "Network error. Check your connection.",
}

GENERIC_AUTH_ERROR = "An unexpected error occurred. Please try again."

# Supabase auth error codes mapped onto the codes above
PROVIDER_CODE_ALIASES = {
    "user_already_exists": "email-already-in-use",
    "email_exists": "email-already-in-use",
    "email_address_invalid": "invalid-email",
    "validation_failed": "invalid-email",
    "weak_password": "weak-password",
    "user_not_found": "user-not-found",
    "invalid_credentials": "invalid-credential",
    "over_request_rate_limit": "too-many-requests",
    "over_email_send_rate_limit": "too-many-requests",
}


def normalize_auth_code(code: Optional[str]) -> Optional[str]:
    """Strip provider prefixes ('auth/') and fold provider aliases"""
    if not code:
        return None
    normalized = code.strip()
    if normalized.startswith("auth/"):
        normalized = normalized[len("auth/"):]
    return PROVIDER_CODE_ALIASES.get(normalized, normalized)


def friendly_auth_error(code: Optional[str]) -> str:
    return AUTH_ERROR_MESSAGES.get(normalize_auth_code(code) or "", GENERIC_AUTH_ERROR)
