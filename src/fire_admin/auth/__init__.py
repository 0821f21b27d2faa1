"""Auth – multi-tenant sign-in configuration."""
from fire_admin.auth.config import (
    EmailPrivacyConfig,
    EmailSignInConfig,
    MultiFactorAuthConfig,
    PasswordPolicyConfig,
    RecaptchaConfig,
    SmsRegionConfig,
    validate_test_phone_numbers,
)
from fire_admin.auth.tenant import Tenant

__all__ = [
    "EmailPrivacyConfig",
    "EmailSignInConfig",
    "MultiFactorAuthConfig",
    "PasswordPolicyConfig",
    "RecaptchaConfig",
    "SmsRegionConfig",
    "Tenant",
    "validate_test_phone_numbers",
]
