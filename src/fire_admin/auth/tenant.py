"""Auth – Tenant value object.

A tenant is an isolated user pool inside one project, with its own sign-in
configuration. :class:`Tenant` is built from the backend response;
:meth:`Tenant.build_server_request` turns create / update options into the
backend request shape.
"""
from __future__ import annotations

import copy
import re
from typing import Any, Mapping

from fire_admin.auth.config import (
    EmailPrivacyConfig,
    EmailSignInConfig,
    MultiFactorAuthConfig,
    PasswordPolicyConfig,
    RecaptchaConfig,
    SmsRegionConfig,
    validate_test_phone_numbers,
)
from fire_admin.kernel.errors import AuthError, AuthErrorCode

__all__ = ["TENANT_OPTION_KEYS", "Tenant"]

TENANT_OPTION_KEYS = frozenset(
    {
        "display_name",
        "email_sign_in_config",
        "anonymous_sign_in_enabled",
        "multi_factor_config",
        "test_phone_numbers",
        "sms_region_config",
        "recaptcha_config",
        "password_policy_config",
        "email_privacy_config",
    }
)

_TENANT_RESOURCE = re.compile(r"/tenants/(.+)$")


class Tenant:
    """A tenant configuration as returned by the backend.

    Attributes mirror the option keys accepted by
    :meth:`build_server_request`. Optional sections are ``None`` when the
    backend did not return them. Nested mappings are private copies.
    """

    def __init__(self, response: Mapping[str, Any]) -> None:
        tenant_id = self.get_tenant_id_from_resource_name(response.get("name", ""))
        if not tenant_id:
            raise AuthError(
                "INTERNAL ASSERT FAILED: Invalid tenant response",
                code=AuthErrorCode.INTERNAL_ERROR,
            )
        self.tenant_id: str = tenant_id
        self.display_name: str | None = response.get("displayName")
        try:
            self.email_sign_in_config = EmailSignInConfig.from_server(response)
        except AuthError:
            # Password sign-in is disabled when the backend omits it.
            self.email_sign_in_config = EmailSignInConfig(enabled=False)
        self.anonymous_sign_in_enabled = bool(response.get("enableAnonymousUser", False))

        self.multi_factor_config: MultiFactorAuthConfig | None = None
        if response.get("mfaConfig") is not None:
            self.multi_factor_config = MultiFactorAuthConfig.from_server(response["mfaConfig"])

        self.test_phone_numbers: dict[str, str] | None = None
        if "testPhoneNumbers" in response:
            self.test_phone_numbers = copy.deepcopy(dict(response["testPhoneNumbers"] or {}))

        self.sms_region_config: dict[str, Any] | None = None
        if response.get("smsRegionConfig") is not None:
            self.sms_region_config = SmsRegionConfig.from_server(response["smsRegionConfig"])

        self.recaptcha_config: RecaptchaConfig | None = None
        if response.get("recaptchaConfig") is not None:
            self.recaptcha_config = RecaptchaConfig.from_server(response["recaptchaConfig"])

        self.password_policy_config: PasswordPolicyConfig | None = None
        if response.get("passwordPolicyConfig") is not None:
            self.password_policy_config = PasswordPolicyConfig.from_server(response["passwordPolicyConfig"])

        self.email_privacy_config: dict[str, Any] | None = None
        if response.get("emailPrivacyConfig") is not None:
            self.email_privacy_config = EmailPrivacyConfig.from_server(response["emailPrivacyConfig"])

    @staticmethod
    def get_tenant_id_from_resource_name(resource_name: str) -> str | None:
        """``projects/p/tenants/t1`` -> ``t1``; ``None`` when there is no tenant segment."""
        match = _TENANT_RESOURCE.search(resource_name or "")
        return match.group(1) if match else None

    @classmethod
    def build_server_request(cls, options: Mapping[str, Any], create_request: bool) -> dict[str, Any]:
        """Validate tenant *options* and return the backend request body.

        ``test_phone_numbers=None`` clears existing numbers on update and is
        rejected on create.
        """
        cls._validate(options, create_request)
        request: dict[str, Any] = {}
        if "email_sign_in_config" in options:
            request.update(EmailSignInConfig.build_server_request(options["email_sign_in_config"]))
        if "display_name" in options:
            request["displayName"] = options["display_name"]
        if "anonymous_sign_in_enabled" in options:
            request["enableAnonymousUser"] = options["anonymous_sign_in_enabled"]
        if "multi_factor_config" in options:
            request["mfaConfig"] = MultiFactorAuthConfig.build_server_request(options["multi_factor_config"])
        if "test_phone_numbers" in options:
            request["testPhoneNumbers"] = copy.deepcopy(dict(options["test_phone_numbers"] or {}))
        if "sms_region_config" in options:
            request["smsRegionConfig"] = SmsRegionConfig.build_server_request(options["sms_region_config"])
        if "recaptcha_config" in options:
            request["recaptchaConfig"] = RecaptchaConfig.build_server_request(options["recaptcha_config"])
        if "password_policy_config" in options:
            request["passwordPolicyConfig"] = PasswordPolicyConfig.build_server_request(
                options["password_policy_config"]
            )
        if "email_privacy_config" in options:
            request["emailPrivacyConfig"] = EmailPrivacyConfig.build_server_request(
                options["email_privacy_config"]
            )
        return request

    @staticmethod
    def _validate(options: Any, create_request: bool) -> None:
        label = "CreateTenantRequest" if create_request else "UpdateTenantRequest"
        if not isinstance(options, Mapping):
            raise AuthError(f'"{label}" must be a valid non-null object.', code=AuthErrorCode.INVALID_ARGUMENT)
        for key in options:
            if key not in TENANT_OPTION_KEYS:
                raise AuthError(
                    f'"{key}" is not a valid {label} parameter.', code=AuthErrorCode.INVALID_ARGUMENT
                )
        if "display_name" in options:
            name = options["display_name"]
            if not isinstance(name, str) or not name:
                raise AuthError(
                    f'"{label}.display_name" must be a valid non-empty string.',
                    code=AuthErrorCode.INVALID_ARGUMENT,
                )
        if "anonymous_sign_in_enabled" in options and not isinstance(options["anonymous_sign_in_enabled"], bool):
            raise AuthError(
                f'"{label}.anonymous_sign_in_enabled" must be a boolean.',
                code=AuthErrorCode.INVALID_ARGUMENT,
            )
        if "test_phone_numbers" in options:
            if options["test_phone_numbers"] is not None:
                validate_test_phone_numbers(options["test_phone_numbers"])
            elif create_request:
                raise AuthError(
                    f'"{label}.test_phone_numbers" must be a non-null object.',
                    code=AuthErrorCode.INVALID_ARGUMENT,
                )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict; unset optional sections are omitted."""
        result: dict[str, Any] = {
            "tenant_id": self.tenant_id,
            "display_name": self.display_name,
            "email_sign_in_config": self.email_sign_in_config.to_dict(),
            "anonymous_sign_in_enabled": self.anonymous_sign_in_enabled,
        }
        if self.multi_factor_config is not None:
            result["multi_factor_config"] = self.multi_factor_config.to_dict()
        if self.test_phone_numbers is not None:
            result["test_phone_numbers"] = copy.deepcopy(self.test_phone_numbers)
        if self.sms_region_config is not None:
            result["sms_region_config"] = copy.deepcopy(self.sms_region_config)
        if self.recaptcha_config is not None:
            result["recaptcha_config"] = self.recaptcha_config.to_dict()
        if self.password_policy_config is not None:
            result["password_policy_config"] = self.password_policy_config.to_dict()
        if self.email_privacy_config is not None:
            result["email_privacy_config"] = copy.deepcopy(self.email_privacy_config)
        return result

    def __repr__(self) -> str:
        return f"Tenant(tenant_id={self.tenant_id!r}, display_name={self.display_name!r})"
