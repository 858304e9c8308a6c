"""
ndbuf Config - Runtime Check Configuration

Controls which safety checks the adaptors perform on their access paths.
The default is fully checked; setting ``NDBUF_UNCHECKED=1`` in the
environment starts the process with every check disabled.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class CheckConfig:
    """Configuration for adaptor safety checks."""
    bounds: bool = True            # Validate indices on a[i] / a[i, j]
    stale_views: bool = True       # Reject cached views after the buffer was rebound
    layout: bool = True            # Validate rank/strides/type when adopting a handle

    @classmethod
    def unchecked(cls) -> "CheckConfig":
        """Configuration with every check disabled."""
        return cls(bounds=False, stale_views=False, layout=False)


def _checks_disabled_by_env() -> bool:
    """Check if checks are disabled via NDBUF_UNCHECKED (default: False)."""
    return os.environ.get('NDBUF_UNCHECKED', '').lower() in ('1', 'true', 'yes')


def _default_checks() -> CheckConfig:
    if _checks_disabled_by_env():
        return CheckConfig.unchecked()
    return CheckConfig()


# =============================================================================
# Global Configuration Manager
# =============================================================================

class NdbufConfig:
    """
    Global configuration manager for ndbuf.

    Provides thread-local configuration with context manager support.

    Example:
        # Global configuration
        ndbuf.config.checks = CheckConfig(bounds=False)

        # Local configuration (context manager)
        with ndbuf.config.local(checks=CheckConfig.unchecked()):
            total = sum(arr[i] for i in range(len(arr)))
        # Back to global config
    """

    def __init__(self):
        self._global_checks = _default_checks()

        # Thread-local storage for context overrides
        self._local = threading.local()

        # Callbacks for config changes
        self._callbacks: Dict[str, List[Callable]] = {
            "checks": [],
        }

    # -------------------------------------------------------------------------
    # Property Accessors (with thread-local override support)
    # -------------------------------------------------------------------------

    @property
    def checks(self) -> CheckConfig:
        """Get check configuration."""
        if getattr(self._local, "checks", None) is not None:
            return self._local.checks
        return self._global_checks

    @checks.setter
    def checks(self, value: CheckConfig):
        """Set global check configuration."""
        self._global_checks = value
        self._notify("checks", value)

    # -------------------------------------------------------------------------
    # Convenience Properties
    # -------------------------------------------------------------------------

    @property
    def bounds_check(self) -> bool:
        """Whether checked indexing validates bounds."""
        return self.checks.bounds

    @bounds_check.setter
    def bounds_check(self, value: bool):
        self.checks = replace(self._global_checks, bounds=value)

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, **kwargs) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            **kwargs: Configuration overrides (checks)

        Returns:
            Context manager
        """
        unknown = set(kwargs) - set(self._callbacks)
        if unknown:
            raise TypeError(f"Unknown configuration section(s): {sorted(unknown)}")
        return _LocalConfigContext(self, **kwargs)

    def _set_local(self, **kwargs) -> Dict[str, Any]:
        """Set thread-local configuration, returning the previous overrides."""
        previous = {}
        for key, value in kwargs.items():
            previous[key] = getattr(self._local, key, None)
            if value is not None:
                setattr(self._local, key, value)
        return previous

    def _restore_local(self, previous: Dict[str, Any]):
        """Restore thread-local configuration saved by _set_local."""
        for key, value in previous.items():
            setattr(self._local, key, value)

    # -------------------------------------------------------------------------
    # Callback Registration
    # -------------------------------------------------------------------------

    def on_change(self, config_name: str, callback: Callable):
        """
        Register callback for configuration changes.

        Args:
            config_name: Name of config ("checks")
            callback: Function to call when config changes
        """
        if config_name in self._callbacks:
            self._callbacks[config_name].append(callback)

    def _notify(self, config_name: str, value: Any):
        """Notify callbacks of configuration change."""
        for callback in self._callbacks.get(config_name, []):
            callback(value)

    # -------------------------------------------------------------------------
    # Reset / Serialization
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset all configurations to defaults.

        Also drops the calling thread's ``local()`` override and notifies
        the registered callbacks.
        """
        self._local.checks = None
        self.checks = _default_checks()

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "checks": {
                "bounds": self.checks.bounds,
                "stale_views": self.checks.stale_views,
                "layout": self.checks.layout,
            },
        }

    def __repr__(self) -> str:
        return f"NdbufConfig({self.to_dict()})"


class _LocalConfigContext:
    """Context manager for local configuration override."""

    def __init__(self, config: NdbufConfig, **kwargs):
        self._config = config
        self._kwargs = kwargs
        self._previous: Dict[str, Any] = {}

    def __enter__(self):
        self._previous = self._config._set_local(**self._kwargs)
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._config._restore_local(self._previous)
        return False


# =============================================================================
# Global Instance
# =============================================================================

config = NdbufConfig()


# =============================================================================
# Convenience Functions
# =============================================================================

def get_config() -> NdbufConfig:
    """Get the global configuration instance."""
    return config


def set_checks(bounds: bool = True, stale_views: bool = True, layout: bool = True):
    """
    Configure adaptor safety checks globally.

    Args:
        bounds: Validate indices on checked access
        stale_views: Detect use of a view after the buffer was rebound
        layout: Validate rank/strides/type when adopting a handle
    """
    config.checks = CheckConfig(
        bounds=bounds,
        stale_views=stale_views,
        layout=layout,
    )


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "CheckConfig",
    "NdbufConfig",
    "config",
    "get_config",
    "set_checks",
]
