from __future__ import annotations

import pytest

from wdhub.core.caps import match_backend, merge_capabilities, rules_predicate
from wdhub.core.errors import MissingRequiredCapability, NoMatchingBackend
from wdhub.core.model import BackendDescriptor, MatchRules


class UiAutomator2Driver:
    pass


class XCUITestDriver:
    pass


class LegacyIosDriver:
    pass


def _descriptor(backend_id: str, factory, platforms: tuple[str, ...], automations: tuple[str, ...] = ()) -> BackendDescriptor:
    rules = MatchRules(platform_names=platforms, automation_names=automations)
    return BackendDescriptor(
        id=backend_id,
        name=backend_id,
        predicate=rules_predicate(rules),
        factory=factory,
        match=rules,
    )


DESCRIPTORS = (
    _descriptor("uiautomator2", UiAutomator2Driver, ("android",), ("uiautomator2",)),
    _descriptor("xcuitest", XCUITestDriver, ("ios",), ("xcuitest",)),
    _descriptor("ios", LegacyIosDriver, ("ios",)),
)


def test_merge_keeps_client_values() -> None:
    merged = merge_capabilities({"platformName": "Ersatz"}, {"platformName": "Fake", "app": "X"})
    assert merged == {"platformName": "Fake", "app": "X"}


def test_merge_adds_default_only_keys_and_nothing_else() -> None:
    defaults = {"deviceName": "Emulator", "noReset": True}
    desired = {"platformName": "Fake", "deviceName": "Pixel"}
    merged = merge_capabilities(defaults, desired)
    assert merged == {"platformName": "Fake", "deviceName": "Pixel", "noReset": True}
    assert set(merged) == set(defaults) | set(desired)


def test_merge_does_not_mutate_inputs() -> None:
    defaults = {"deviceName": "Emulator"}
    desired = {"platformName": "Fake"}
    merge_capabilities(defaults, desired)
    assert defaults == {"deviceName": "Emulator"}
    assert desired == {"platformName": "Fake"}


def test_merge_is_independent_of_key_order() -> None:
    a = merge_capabilities({"x": 1, "y": 2}, {"platformName": "Fake", "y": 3})
    b = merge_capabilities({"y": 2, "x": 1}, {"y": 3, "platformName": "Fake"})
    assert a == b


def test_missing_platform_name_checked_before_predicates() -> None:
    def exploding(caps) -> bool:
        raise AssertionError("predicate must not run")

    descriptor = BackendDescriptor(id="x", name="x", predicate=exploding, factory=object)
    with pytest.raises(MissingRequiredCapability, match="platformName"):
        match_backend({"automationName": "XCUITest"}, [descriptor])


def test_empty_caps_name_platform_name() -> None:
    with pytest.raises(MissingRequiredCapability) as exc:
        match_backend({}, DESCRIPTORS)
    assert exc.value.key == "platformName"
    assert "platformName" in str(exc.value)


def test_automation_name_selects_specific_backend() -> None:
    factory = match_backend({"platformName": "iOS", "automationName": "XCUITest"}, DESCRIPTORS)
    assert factory is XCUITestDriver


def test_platform_only_falls_through_to_generic_backend() -> None:
    assert match_backend({"platformName": "ios"}, DESCRIPTORS) is LegacyIosDriver


def test_first_accepting_descriptor_wins() -> None:
    first = _descriptor("first", UiAutomator2Driver, ("android",))
    second = _descriptor("second", XCUITestDriver, ("android",))
    assert match_backend({"platformName": "Android"}, [first, second]) is UiAutomator2Driver
    assert match_backend({"platformName": "Android"}, [second, first]) is XCUITestDriver


def test_no_matching_backend_names_offending_values() -> None:
    with pytest.raises(NoMatchingBackend) as exc:
        match_backend({"platformName": "Windows", "automationName": "WinAppDriver"}, DESCRIPTORS)
    message = str(exc.value)
    assert "'Windows'" in message
    assert "'WinAppDriver'" in message


def test_automation_rules_reject_missing_automation_name() -> None:
    with pytest.raises(NoMatchingBackend):
        match_backend({"platformName": "Android"}, DESCRIPTORS[:1])


def test_vendor_prefixed_automation_name_is_matched() -> None:
    caps = {"platformName": "iOS", "appium:automationName": "XCUITest"}
    assert match_backend(caps, DESCRIPTORS) is XCUITestDriver


def test_plain_automation_name_takes_precedence_over_vendor_prefix() -> None:
    caps = {"platformName": "Android", "automationName": "UiAutomator2", "appium:automationName": "Espresso"}
    assert match_backend(caps, DESCRIPTORS) is UiAutomator2Driver
