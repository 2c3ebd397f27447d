"""Capability merging and capability-to-backend matching logic."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from wdhub.core.errors import MissingRequiredCapability, NoMatchingBackend
from wdhub.core.model import BackendDescriptor, Capabilities, MatchRules

PLATFORM_NAME = "platformName"
AUTOMATION_NAME = "automationName"
VENDOR_PREFIX = "appium:"


def merge_capabilities(defaults: Capabilities | None, desired: Capabilities) -> dict[str, Any]:
    """Return defaults overlaid with desired; keys the client sent always win."""
    merged = dict(defaults or {})
    merged.update(desired)
    return merged


def capability_value(capabilities: Capabilities, name: str) -> Any:
    """Read ``name``, falling back to its ``appium:`` vendor-prefixed form."""
    value = capabilities.get(name)
    if value is None:
        value = capabilities.get(VENDOR_PREFIX + name)
    return value


def _lowered(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip().lower()


def rules_accept(rules: MatchRules, capabilities: Capabilities) -> bool:
    platform = _lowered(capabilities.get(PLATFORM_NAME))
    if rules.platform_names and platform not in rules.platform_names:
        return False
    if rules.automation_names:
        return _lowered(capability_value(capabilities, AUTOMATION_NAME)) in rules.automation_names
    return True


def rules_predicate(rules: MatchRules) -> Callable[[Capabilities], bool]:
    def _predicate(capabilities: Capabilities) -> bool:
        return rules_accept(rules, capabilities)

    return _predicate


def require_platform(capabilities: Capabilities) -> None:
    if capabilities.get(PLATFORM_NAME) in (None, ""):
        raise MissingRequiredCapability(PLATFORM_NAME)


def matching_descriptor(
    capabilities: Capabilities,
    descriptors: Iterable[BackendDescriptor],
) -> BackendDescriptor:
    require_platform(capabilities)
    for descriptor in descriptors:
        if descriptor.predicate(capabilities):
            return descriptor

    automation = capability_value(capabilities, AUTOMATION_NAME)
    detail = f"platformName={capabilities.get(PLATFORM_NAME)!r}"
    if automation is not None:
        detail += f", automationName={automation!r}"
    raise NoMatchingBackend(f"Could not find a backend for desired capabilities: {detail}")


def match_backend(
    capabilities: Capabilities,
    descriptors: Iterable[BackendDescriptor],
) -> Callable[[], Any]:
    """Return the factory of the first descriptor, in registration order, accepting the caps."""
    return matching_descriptor(capabilities, descriptors).factory


def describe_rules(rules: MatchRules | None) -> str:
    if rules is None:
        return "<custom predicate>"
    platforms = ", ".join(rules.platform_names) or "*"
    if not rules.automation_names:
        return f"platformName in [{platforms}]"
    return f"platformName in [{platforms}], automationName in [{', '.join(rules.automation_names)}]"