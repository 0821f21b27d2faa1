"""Unit tests – tenant sign-in configuration sections."""
from __future__ import annotations

import pytest

from fire_admin.auth import (
    EmailPrivacyConfig,
    EmailSignInConfig,
    MultiFactorAuthConfig,
    PasswordPolicyConfig,
    RecaptchaConfig,
    SmsRegionConfig,
    validate_test_phone_numbers,
)
from fire_admin.kernel.errors import AuthError, AuthErrorCode


# ---------------------------------------------------------------------------
# EmailSignInConfig
# ---------------------------------------------------------------------------

class TestEmailSignInConfig:
    def test_build_server_request(self) -> None:
        assert EmailSignInConfig.build_server_request({"enabled": True, "password_required": False}) == {
            "allowPasswordSignup": True,
            "enableEmailLinkSignin": True,
        }
        assert EmailSignInConfig.build_server_request({"enabled": False}) == {"allowPasswordSignup": False}

    @pytest.mark.parametrize(
        "options",
        [None, {}, {"enabled": "yes"}, {"enabled": True, "password_required": 1}, {"enabled": True, "x": 1}],
    )
    def test_invalid_options(self, options) -> None:
        with pytest.raises(AuthError):
            EmailSignInConfig.build_server_request(options)

    def test_from_server(self) -> None:
        config = EmailSignInConfig.from_server({"allowPasswordSignup": True, "enableEmailLinkSignin": True})
        assert config == EmailSignInConfig(enabled=True, password_required=False)
        assert config.to_dict() == {"enabled": True, "password_required": False}

    def test_from_server_requires_allow_password_signup(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            EmailSignInConfig.from_server({})
        assert exc_info.value.code == AuthErrorCode.INTERNAL_ERROR
        assert exc_info.value.full_code == "auth/internal-error"


# ---------------------------------------------------------------------------
# MultiFactorAuthConfig
# ---------------------------------------------------------------------------

class TestMultiFactorAuthConfig:
    def test_build_server_request(self) -> None:
        request = MultiFactorAuthConfig.build_server_request(
            {
                "state": "ENABLED",
                "factor_ids": ["phone"],
                "provider_configs": [{"state": "ENABLED", "totp_provider_config": {"adjacent_intervals": 5}}],
            }
        )
        assert request == {
            "state": "ENABLED",
            "enabledProviders": ["PHONE_SMS"],
            "providerConfigs": [{"state": "ENABLED", "totpProviderConfig": {"adjacentIntervals": 5}}],
        }

    @pytest.mark.parametrize(
        "options",
        [
            {"state": "ON"},
            {"state": "ENABLED", "factor_ids": ["email"]},
            {"state": "ENABLED", "factor_ids": "phone"},
            {"state": "ENABLED", "provider_configs": [{"state": "ENABLED", "totp_provider_config": {"adjacent_intervals": 11}}]},
            {"state": "ENABLED", "provider_configs": [{"state": "MAYBE"}]},
        ],
    )
    def test_invalid_options(self, options) -> None:
        with pytest.raises(AuthError):
            MultiFactorAuthConfig.build_server_request(options)

    def test_from_server(self) -> None:
        config = MultiFactorAuthConfig.from_server(
            {
                "state": "DISABLED",
                "enabledProviders": ["PHONE_SMS"],
                "providerConfigs": [{"state": "ENABLED", "totpProviderConfig": {"adjacentIntervals": 3}}],
            }
        )
        assert config.state == "DISABLED"
        assert config.factor_ids == ("phone",)
        assert config.to_dict()["provider_configs"] == [
            {"state": "ENABLED", "totp_provider_config": {"adjacent_intervals": 3}}
        ]


# ---------------------------------------------------------------------------
# Test phone numbers
# ---------------------------------------------------------------------------

class TestValidateTestPhoneNumbers:
    def test_valid(self) -> None:
        validate_test_phone_numbers({"+16505550101": "123456", "+1 (650) 555-0102": "654321"})

    def test_limit(self) -> None:
        numbers = {f"+1650555{i:04d}": "123456" for i in range(11)}
        with pytest.raises(AuthError) as exc_info:
            validate_test_phone_numbers(numbers)
        assert exc_info.value.code == AuthErrorCode.TEST_PHONE_NUMBER_LIMIT_EXCEEDED

    @pytest.mark.parametrize(
        "numbers",
        [{"16505550101": "123456"}, {"+16505550101": "12345"}, {"+16505550101": 123456}],
    )
    def test_invalid_pair(self, numbers) -> None:
        with pytest.raises(AuthError) as exc_info:
            validate_test_phone_numbers(numbers)
        assert exc_info.value.code == AuthErrorCode.INVALID_TESTING_PHONE_NUMBER

    def test_not_a_mapping(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            validate_test_phone_numbers(["+16505550101"])
        assert exc_info.value.code == AuthErrorCode.INVALID_ARGUMENT


# ---------------------------------------------------------------------------
# SmsRegionConfig
# ---------------------------------------------------------------------------

class TestSmsRegionConfig:
    def test_allow_by_default(self) -> None:
        assert SmsRegionConfig.build_server_request({"allow_by_default": {"disallowed_regions": ["US"]}}) == {
            "allowByDefault": {"disallowedRegions": ["US"]}
        }

    def test_allowlist_only_round_trip(self) -> None:
        request = SmsRegionConfig.build_server_request({"allowlist_only": {"allowed_regions": ["CA", "MX"]}})
        assert request == {"allowlistOnly": {"allowedRegions": ["CA", "MX"]}}
        assert SmsRegionConfig.from_server(request) == {"allowlist_only": {"allowed_regions": ["CA", "MX"]}}

    @pytest.mark.parametrize(
        "options",
        [
            {},
            {"allow_by_default": {}, "allowlist_only": {}},
            {"allow_by_default": {"allowed_regions": ["US"]}},
            {"allowlist_only": {"allowed_regions": "US"}},
        ],
    )
    def test_invalid_options(self, options) -> None:
        with pytest.raises(AuthError):
            SmsRegionConfig.build_server_request(options)


# ---------------------------------------------------------------------------
# RecaptchaConfig
# ---------------------------------------------------------------------------

class TestRecaptchaConfig:
    def test_build_server_request(self) -> None:
        request = RecaptchaConfig.build_server_request(
            {
                "email_password_enforcement_state": "AUDIT",
                "managed_rules": [{"end_score": 0.3, "action": "BLOCK"}],
                "use_account_defender": True,
            }
        )
        assert request == {
            "emailPasswordEnforcementState": "AUDIT",
            "managedRules": [{"endScore": 0.3, "action": "BLOCK"}],
            "useAccountDefender": True,
        }

    @pytest.mark.parametrize(
        "options",
        [
            {"email_password_enforcement_state": "ON"},
            {"managed_rules": [{"end_score": 1.5, "action": "BLOCK"}]},
            {"managed_rules": [{"end_score": 0.5, "action": "ALLOW"}]},
            {"use_account_defender": "yes"},
            {"recaptcha_keys": []},
        ],
    )
    def test_invalid_options(self, options) -> None:
        with pytest.raises(AuthError):
            RecaptchaConfig.build_server_request(options)

    def test_from_server_null_lists(self) -> None:
        config = RecaptchaConfig.from_server({"managedRules": None, "recaptchaKeys": None})
        assert config.managed_rules == ()
        assert config.recaptcha_keys == ()

    def test_from_server_includes_read_only_keys(self) -> None:
        config = RecaptchaConfig.from_server(
            {
                "emailPasswordEnforcementState": "ENFORCE",
                "recaptchaKeys": [{"type": "WEB", "key": "site-key"}],
            }
        )
        assert config.to_dict() == {
            "email_password_enforcement_state": "ENFORCE",
            "recaptcha_keys": [{"type": "WEB", "key": "site-key"}],
        }


# ---------------------------------------------------------------------------
# PasswordPolicyConfig
# ---------------------------------------------------------------------------

class TestPasswordPolicyConfig:
    def test_enforce_with_constraints(self) -> None:
        request = PasswordPolicyConfig.build_server_request(
            {
                "enforcement_state": "ENFORCE",
                "force_upgrade_on_signin": True,
                "constraints": {"require_uppercase": True, "min_length": 8, "max_length": 64},
            }
        )
        assert request["passwordPolicyEnforcementState"] == "ENFORCE"
        assert request["forceUpgradeOnSignin"] is True
        options = request["passwordPolicyVersions"][0]["customStrengthOptions"]
        assert options["containsUppercaseCharacter"] is True
        assert options["containsNumericCharacter"] is False
        assert (options["minPasswordLength"], options["maxPasswordLength"]) == (8, 64)

    def test_off_without_constraints(self) -> None:
        assert PasswordPolicyConfig.build_server_request({"enforcement_state": "OFF"}) == {
            "passwordPolicyEnforcementState": "OFF",
            "forceUpgradeOnSignin": False,
        }

    @pytest.mark.parametrize(
        "options",
        [
            {"enforcement_state": "ENFORCE"},
            {"enforcement_state": "STRICT"},
            {"enforcement_state": "ENFORCE", "constraints": {"min_length": 5}},
            {"enforcement_state": "ENFORCE", "constraints": {"min_length": 31}},
            {"enforcement_state": "ENFORCE", "constraints": {"min_length": 10, "max_length": 9}},
            {"enforcement_state": "ENFORCE", "constraints": {"max_length": 4097}},
            {"enforcement_state": "ENFORCE", "constraints": {"require_numeric": "yes"}},
        ],
    )
    def test_invalid_options(self, options) -> None:
        with pytest.raises(AuthError):
            PasswordPolicyConfig.build_server_request(options)

    def test_from_server(self) -> None:
        config = PasswordPolicyConfig.from_server(
            {
                "passwordPolicyEnforcementState": "ENFORCE",
                "passwordPolicyVersions": [
                    {"customStrengthOptions": {"containsLowercaseCharacter": True, "minPasswordLength": 10}}
                ],
            }
        )
        assert config.enforcement_state == "ENFORCE"
        assert config.constraints == {"require_lowercase": True, "min_length": 10}

    def test_from_server_null_strength_options(self) -> None:
        config = PasswordPolicyConfig.from_server(
            {"passwordPolicyEnforcementState": "OFF", "passwordPolicyVersions": [{"customStrengthOptions": None}]}
        )
        assert config.constraints == {}


# ---------------------------------------------------------------------------
# EmailPrivacyConfig
# ---------------------------------------------------------------------------

class TestEmailPrivacyConfig:
    def test_round_trip(self) -> None:
        request = EmailPrivacyConfig.build_server_request({"enable_improved_email_privacy": True})
        assert request == {"enableImprovedEmailPrivacy": True}
        assert EmailPrivacyConfig.from_server(request) == {"enable_improved_email_privacy": True}

    def test_rejects_non_bool(self) -> None:
        with pytest.raises(AuthError):
            EmailPrivacyConfig.build_server_request({"enable_improved_email_privacy": "on"})
