"""Auth – tenant sign-in configuration sections.

Each section validates caller options (snake_case mappings), converts them
to the backend's camelCase request shape with ``build_server_request`` and
reads the backend response back with ``from_server``. Invalid options raise
:class:`AuthError`.
"""
from __future__ import annotations

import copy
import dataclasses
import re
from typing import Any, Mapping

from fire_admin.kernel.errors import AuthError, AuthErrorCode

__all__ = [
    "EmailPrivacyConfig",
    "EmailSignInConfig",
    "MAX_TEST_PHONE_NUMBERS",
    "MultiFactorAuthConfig",
    "PasswordPolicyConfig",
    "RecaptchaConfig",
    "SmsRegionConfig",
    "validate_test_phone_numbers",
]

MAX_TEST_PHONE_NUMBERS = 10

_PHONE_NUMBER = re.compile(r"^\+[\d\s\-().]*\d[\d\s\-().]*$")
_TEST_CODE = re.compile(r"^\d{6}$")


def _invalid(message: str, code: AuthErrorCode = AuthErrorCode.INVALID_CONFIG) -> AuthError:
    return AuthError(message, code=code)


def _require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _invalid(f'"{label}" must be a non-null object.')
    return value


def _check_keys(options: Mapping[str, Any], valid: frozenset[str], label: str) -> None:
    for key in options:
        if key not in valid:
            raise _invalid(f'"{key}" is not a valid {label} parameter.', AuthErrorCode.INVALID_ARGUMENT)


def _check_bool(options: Mapping[str, Any], key: str, label: str, required: bool = False) -> None:
    if key not in options:
        if required:
            raise _invalid(f'"{label}.{key}" must be a boolean.')
        return
    if not isinstance(options[key], bool):
        raise _invalid(f'"{label}.{key}" must be a boolean.')


def _check_string_list(value: Any, label: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise _invalid(f'"{label}" must be a list of non-empty strings.')
    return list(value)


# ---------------------------------------------------------------------------
# Email sign-in
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class EmailSignInConfig:
    """Email/password sign-in; ``password_required=False`` allows email links."""

    enabled: bool
    password_required: bool = True

    _KEYS = frozenset({"enabled", "password_required"})

    @classmethod
    def build_server_request(cls, options: Any) -> dict[str, Any]:
        label = "EmailSignInConfig"
        options = _require_mapping(options, label)
        _check_keys(options, cls._KEYS, label)
        _check_bool(options, "enabled", label, required=True)
        _check_bool(options, "password_required", label)
        request: dict[str, Any] = {"allowPasswordSignup": options["enabled"]}
        if "password_required" in options:
            request["enableEmailLinkSignin"] = not options["password_required"]
        return request

    @classmethod
    def from_server(cls, response: Mapping[str, Any]) -> "EmailSignInConfig":
        if not isinstance(response, Mapping) or "allowPasswordSignup" not in response:
            raise AuthError(
                "INTERNAL ASSERT FAILED: Invalid email sign-in configuration response",
                code=AuthErrorCode.INTERNAL_ERROR,
            )
        return cls(
            enabled=bool(response["allowPasswordSignup"]),
            password_required=not response.get("enableEmailLinkSignin", False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "password_required": self.password_required}


# ---------------------------------------------------------------------------
# Multi-factor auth
# ---------------------------------------------------------------------------

_MFA_STATES = ("ENABLED", "DISABLED")
_FACTOR_TO_PROVIDER = {"phone": "PHONE_SMS"}
_PROVIDER_TO_FACTOR = {v: k for k, v in _FACTOR_TO_PROVIDER.items()}
_MAX_ADJACENT_INTERVALS = 10


@dataclasses.dataclass(frozen=True)
class MultiFactorAuthConfig:
    state: str
    factor_ids: tuple[str, ...] = ()
    provider_configs: tuple[dict[str, Any], ...] = ()

    _KEYS = frozenset({"state", "factor_ids", "provider_configs"})

    @classmethod
    def build_server_request(cls, options: Any) -> dict[str, Any]:
        label = "MultiFactorConfig"
        options = _require_mapping(options, label)
        _check_keys(options, cls._KEYS, label)
        if options.get("state") not in _MFA_STATES:
            raise _invalid(f'"{label}.state" must be either "ENABLED" or "DISABLED".')
        request: dict[str, Any] = {"state": options["state"]}

        if "factor_ids" in options:
            providers = []
            for factor_id in _check_string_list(options["factor_ids"], f"{label}.factor_ids"):
                if factor_id not in _FACTOR_TO_PROVIDER:
                    raise _invalid(f'"{factor_id}" is not a valid "AuthFactorType".')
                providers.append(_FACTOR_TO_PROVIDER[factor_id])
            request["enabledProviders"] = providers

        if "provider_configs" in options:
            request["providerConfigs"] = [
                cls._provider_config_request(pc, f"{label}.provider_configs")
                for pc in options["provider_configs"] or []
            ]
        return request

    @staticmethod
    def _provider_config_request(config: Any, label: str) -> dict[str, Any]:
        config = _require_mapping(config, label)
        _check_keys(config, frozenset({"state", "totp_provider_config"}), label)
        if config.get("state") not in _MFA_STATES:
            raise _invalid(f'"{label}.state" must be either "ENABLED" or "DISABLED".')
        totp = _require_mapping(config.get("totp_provider_config", {}), f"{label}.totp_provider_config")
        _check_keys(totp, frozenset({"adjacent_intervals"}), f"{label}.totp_provider_config")
        totp_request: dict[str, Any] = {}
        if "adjacent_intervals" in totp:
            intervals = totp["adjacent_intervals"]
            if (
                isinstance(intervals, bool)
                or not isinstance(intervals, int)
                or not 0 <= intervals <= _MAX_ADJACENT_INTERVALS
            ):
                raise _invalid(
                    f'"{label}.totp_provider_config.adjacent_intervals" must be an integer '
                    f"between 0 and {_MAX_ADJACENT_INTERVALS}."
                )
            totp_request["adjacentIntervals"] = intervals
        return {"state": config["state"], "totpProviderConfig": totp_request}

    @classmethod
    def from_server(cls, response: Mapping[str, Any]) -> "MultiFactorAuthConfig":
        if not isinstance(response, Mapping) or "state" not in response:
            raise AuthError(
                "INTERNAL ASSERT FAILED: Invalid multi-factor configuration response",
                code=AuthErrorCode.INTERNAL_ERROR,
            )
        factor_ids = tuple(
            _PROVIDER_TO_FACTOR[p] for p in (response.get("enabledProviders") or []) if p in _PROVIDER_TO_FACTOR
        )
        provider_configs = tuple(
            {
                "state": pc.get("state"),
                "totp_provider_config": {
                    "adjacent_intervals": (pc.get("totpProviderConfig") or {}).get("adjacentIntervals")
                },
            }
            for pc in response.get("providerConfigs") or []
        )
        return cls(response["state"], factor_ids, provider_configs)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"state": self.state, "factor_ids": list(self.factor_ids)}
        if self.provider_configs:
            result["provider_configs"] = copy.deepcopy(list(self.provider_configs))
        return result


# ---------------------------------------------------------------------------
# Test phone numbers
# ---------------------------------------------------------------------------

def validate_test_phone_numbers(test_phone_numbers: Any) -> None:
    """Validate a ``{phone_number: six_digit_code}`` mapping."""
    if not isinstance(test_phone_numbers, Mapping):
        raise _invalid('"test_phone_numbers" must be a map of phone number / code pairs.', AuthErrorCode.INVALID_ARGUMENT)
    if len(test_phone_numbers) > MAX_TEST_PHONE_NUMBERS:
        raise _invalid(
            f"Maximum of {MAX_TEST_PHONE_NUMBERS} test phone number / code pairs can be configured.",
            AuthErrorCode.TEST_PHONE_NUMBER_LIMIT_EXCEEDED,
        )
    for phone_number, code in test_phone_numbers.items():
        if not isinstance(phone_number, str) or not _PHONE_NUMBER.match(phone_number):
            raise _invalid(
                f'"{phone_number}" is not a valid E.164 standard compliant phone number.',
                AuthErrorCode.INVALID_TESTING_PHONE_NUMBER,
            )
        if not isinstance(code, str) or not _TEST_CODE.match(code):
            raise _invalid(
                f'"{code}" is not a valid 6 digit code string.',
                AuthErrorCode.INVALID_TESTING_PHONE_NUMBER,
            )


# ---------------------------------------------------------------------------
# SMS regions
# ---------------------------------------------------------------------------

class SmsRegionConfig:
    """Exactly one of ``allow_by_default`` / ``allowlist_only``."""

    _MODES = {
        "allow_by_default": ("allowByDefault", "disallowed_regions", "disallowedRegions"),
        "allowlist_only": ("allowlistOnly", "allowed_regions", "allowedRegions"),
    }

    @classmethod
    def build_server_request(cls, options: Any) -> dict[str, Any]:
        label = "SmsRegionConfig"
        options = _require_mapping(options, label)
        _check_keys(options, frozenset(cls._MODES), label)
        if len(options) != 1:
            raise _invalid(f'"{label}" must specify exactly one of "allow_by_default" or "allowlist_only".')
        (mode, section), = options.items()
        server_mode, regions_key, server_regions_key = cls._MODES[mode]
        section = _require_mapping(section, f"{label}.{mode}")
        _check_keys(section, frozenset({regions_key}), f"{label}.{mode}")
        regions = _check_string_list(section.get(regions_key, []), f"{label}.{mode}.{regions_key}")
        return {server_mode: {server_regions_key: regions}}

    @classmethod
    def from_server(cls, response: Mapping[str, Any]) -> dict[str, Any]:
        for mode, (server_mode, regions_key, server_regions_key) in cls._MODES.items():
            if server_mode in response:
                section = response[server_mode] or {}
                return {mode: {regions_key: list(section.get(server_regions_key) or [])}}
        return {}


# ---------------------------------------------------------------------------
# reCAPTCHA
# ---------------------------------------------------------------------------

_RECAPTCHA_STATES = ("OFF", "AUDIT", "ENFORCE")


@dataclasses.dataclass(frozen=True)
class RecaptchaConfig:
    email_password_enforcement_state: str | None = None
    managed_rules: tuple[dict[str, Any], ...] = ()
    use_account_defender: bool | None = None
    recaptcha_keys: tuple[dict[str, Any], ...] = ()

    _KEYS = frozenset({"email_password_enforcement_state", "managed_rules", "use_account_defender"})

    @classmethod
    def build_server_request(cls, options: Any) -> dict[str, Any]:
        label = "RecaptchaConfig"
        options = _require_mapping(options, label)
        _check_keys(options, cls._KEYS, label)
        request: dict[str, Any] = {}
        if "email_password_enforcement_state" in options:
            state = options["email_password_enforcement_state"]
            if state not in _RECAPTCHA_STATES:
                raise _invalid(f'"{label}.email_password_enforcement_state" must be one of {_RECAPTCHA_STATES}.')
            request["emailPasswordEnforcementState"] = state
        if "managed_rules" in options:
            rules = options["managed_rules"]
            if not isinstance(rules, list):
                raise _invalid(f'"{label}.managed_rules" must be a list.')
            request["managedRules"] = [cls._rule_request(rule, f"{label}.managed_rules") for rule in rules]
        _check_bool(options, "use_account_defender", label)
        if "use_account_defender" in options:
            request["useAccountDefender"] = options["use_account_defender"]
        return request

    @staticmethod
    def _rule_request(rule: Any, label: str) -> dict[str, Any]:
        rule = _require_mapping(rule, label)
        _check_keys(rule, frozenset({"end_score", "action"}), label)
        score = rule.get("end_score")
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0.0 <= score <= 1.0:
            raise _invalid(f'"{label}.end_score" must be a number between 0.0 and 1.0.')
        if rule.get("action") != "BLOCK":
            raise _invalid(f'"{label}.action" must be "BLOCK".')
        return {"endScore": score, "action": "BLOCK"}

    @classmethod
    def from_server(cls, response: Mapping[str, Any]) -> "RecaptchaConfig":
        return cls(
            email_password_enforcement_state=response.get("emailPasswordEnforcementState"),
            managed_rules=tuple(
                {"end_score": r.get("endScore"), "action": r.get("action")}
                for r in response.get("managedRules") or []
            ),
            use_account_defender=response.get("useAccountDefender"),
            recaptcha_keys=tuple(
                {"type": k.get("type"), "key": k.get("key")} for k in response.get("recaptchaKeys") or []
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.email_password_enforcement_state is not None:
            result["email_password_enforcement_state"] = self.email_password_enforcement_state
        if self.managed_rules:
            result["managed_rules"] = copy.deepcopy(list(self.managed_rules))
        if self.use_account_defender is not None:
            result["use_account_defender"] = self.use_account_defender
        if self.recaptcha_keys:
            result["recaptcha_keys"] = copy.deepcopy(list(self.recaptcha_keys))
        return result


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------

_PASSWORD_STATES = ("ENFORCE", "OFF")
_MIN_PASSWORD_LENGTH = 6
_MAX_MIN_PASSWORD_LENGTH = 30
_MAX_PASSWORD_LENGTH = 4096
_CONSTRAINT_FLAGS = {
    "require_uppercase": "containsUppercaseCharacter",
    "require_lowercase": "containsLowercaseCharacter",
    "require_numeric": "containsNumericCharacter",
    "require_non_alphanumeric": "containsNonAlphanumericCharacter",
}


@dataclasses.dataclass(frozen=True)
class PasswordPolicyConfig:
    enforcement_state: str
    force_upgrade_on_signin: bool = False
    constraints: dict[str, Any] = dataclasses.field(default_factory=dict)

    _KEYS = frozenset({"enforcement_state", "force_upgrade_on_signin", "constraints"})

    @classmethod
    def build_server_request(cls, options: Any) -> dict[str, Any]:
        label = "PasswordPolicyConfig"
        options = _require_mapping(options, label)
        _check_keys(options, cls._KEYS, label)
        state = options.get("enforcement_state")
        if state not in _PASSWORD_STATES:
            raise _invalid(f'"{label}.enforcement_state" must be either "ENFORCE" or "OFF".')
        _check_bool(options, "force_upgrade_on_signin", label)
        request: dict[str, Any] = {
            "passwordPolicyEnforcementState": state,
            "forceUpgradeOnSignin": options.get("force_upgrade_on_signin", False),
        }
        if "constraints" not in options:
            if state == "ENFORCE":
                raise _invalid(f'"{label}.constraints" must be defined when enforcement_state is "ENFORCE".')
            return request
        request["passwordPolicyVersions"] = [
            {"customStrengthOptions": cls._constraints_request(options["constraints"], f"{label}.constraints")}
        ]
        return request

    @staticmethod
    def _constraints_request(constraints: Any, label: str) -> dict[str, Any]:
        constraints = _require_mapping(constraints, label)
        _check_keys(constraints, frozenset(_CONSTRAINT_FLAGS) | {"min_length", "max_length"}, label)
        options: dict[str, Any] = {}
        for flag, server_flag in _CONSTRAINT_FLAGS.items():
            _check_bool(constraints, flag, label)
            options[server_flag] = constraints.get(flag, False)
        min_length = constraints.get("min_length", _MIN_PASSWORD_LENGTH)
        max_length = constraints.get("max_length", _MAX_PASSWORD_LENGTH)
        if (
            isinstance(min_length, bool)
            or not isinstance(min_length, int)
            or not _MIN_PASSWORD_LENGTH <= min_length <= _MAX_MIN_PASSWORD_LENGTH
        ):
            raise _invalid(
                f'"{label}.min_length" must be an integer between '
                f"{_MIN_PASSWORD_LENGTH} and {_MAX_MIN_PASSWORD_LENGTH}."
            )
        if (
            isinstance(max_length, bool)
            or not isinstance(max_length, int)
            or not min_length <= max_length <= _MAX_PASSWORD_LENGTH
        ):
            raise _invalid(
                f'"{label}.max_length" must be an integer between min_length and {_MAX_PASSWORD_LENGTH}.'
            )
        options["minPasswordLength"] = min_length
        options["maxPasswordLength"] = max_length
        return options

    @classmethod
    def from_server(cls, response: Mapping[str, Any]) -> "PasswordPolicyConfig":
        constraints: dict[str, Any] = {}
        versions = response.get("passwordPolicyVersions") or []
        if versions:
            strength = versions[0].get("customStrengthOptions") or {}
            for flag, server_flag in _CONSTRAINT_FLAGS.items():
                if server_flag in strength:
                    constraints[flag] = strength[server_flag]
            if "minPasswordLength" in strength:
                constraints["min_length"] = strength["minPasswordLength"]
            if "maxPasswordLength" in strength:
                constraints["max_length"] = strength["maxPasswordLength"]
        return cls(
            enforcement_state=response.get("passwordPolicyEnforcementState", "OFF"),
            force_upgrade_on_signin=bool(response.get("forceUpgradeOnSignin", False)),
            constraints=constraints,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "enforcement_state": self.enforcement_state,
            "force_upgrade_on_signin": self.force_upgrade_on_signin,
            "constraints": copy.deepcopy(self.constraints),
        }


# ---------------------------------------------------------------------------
# Email privacy
# ---------------------------------------------------------------------------

class EmailPrivacyConfig:
    @staticmethod
    def build_server_request(options: Any) -> dict[str, Any]:
        label = "EmailPrivacyConfig"
        options = _require_mapping(options, label)
        _check_keys(options, frozenset({"enable_improved_email_privacy"}), label)
        _check_bool(options, "enable_improved_email_privacy", label)
        request: dict[str, Any] = {}
        if "enable_improved_email_privacy" in options:
            request["enableImprovedEmailPrivacy"] = options["enable_improved_email_privacy"]
        return request

    @staticmethod
    def from_server(response: Mapping[str, Any]) -> dict[str, Any]:
        if "enableImprovedEmailPrivacy" in response:
            return {"enable_improved_email_privacy": bool(response["enableImprovedEmailPrivacy"])}
        return {}
