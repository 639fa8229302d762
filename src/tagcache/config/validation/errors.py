"""Config validation errors.

Values of secret settings (``REDIS_PASSWORD`` and friends) never appear in
the message or ``detail``, since both end up in logs.
"""
from __future__ import annotations

from tagcache.kernel.errors import BaseError

_SECRET_MARKERS = ("password", "secret", "token")
_MASK = "***"


def _is_secret(setting_name: str) -> bool:
    lowered = setting_name.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


class ConfigError(BaseError):
    """Configuration is invalid or a source could not be read."""
    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"Required setting '{setting_name}' is missing", detail={"setting": setting_name})
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A setting is present but fails coercion or cross-field validation."""
    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        shown = _MASK if _is_secret(setting_name) else repr(value)
        super().__init__(
            f"Setting '{setting_name}' has invalid value {shown}: {reason}",
            detail={"setting": setting_name, "reason": reason},
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
