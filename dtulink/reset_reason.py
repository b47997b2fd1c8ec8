"""Human-readable names for chip reset reason codes."""

_CLASSIC_ONLY = frozenset({4, 6, 14})

_VERBOSE = {
    1: "Vbat power on reset",
    3: "Software reset digital core",
    4: "Legacy watch dog reset digital core",
    5: "Deep Sleep reset digital core",
    6: "Reset by SLC module, reset digital core",
    7: "Timer Group0 Watch dog reset digital core",
    8: "Timer Group1 Watch dog reset digital core",
    9: "RTC Watch dog Reset digital core",
    10: "Instrusion tested to reset CPU",
    11: "Time Group reset CPU",
    12: "Software reset CPU",
    13: "RTC Watch dog Reset CPU",
    14: "for APP CPU, reset by PRO CPU",
    15: "Reset when the vdd voltage is not stable",
    16: "RTC Watch dog reset digital core and rtc module",
}

_SHORT = {
    1: "POWERON_RESET",
    3: "SW_RESET",
    4: "OWDT_RESET",
    5: "DEEPSLEEP_RESET",
    6: "SDIO_RESET",
    7: "TG0WDT_SYS_RESET",
    8: "TG1WDT_SYS_RESET",
    9: "RTCWDT_SYS_RESET",
    10: "INTRUSION_RESET",
    11: "TGWDT_CPU_RESET",
    12: "SW_CPU_RESET",
    13: "RTCWDT_CPU_RESET",
    14: "EXT_CPU_RESET",
    15: "RTCWDT_BROWN_OUT_RESET",
    16: "RTCWDT_RTC_RESET",
}

_UNKNOWN = "NO_MEAN"


def _lookup(table: dict, reason: int, classic: bool) -> str:
    if not classic and reason in _CLASSIC_ONLY:
        return _UNKNOWN
    return table.get(reason, _UNKNOWN)


def reset_reason_verbose(reason: int, classic: bool = True) -> str:
    """Describe a reset reason code in words.

    ``classic`` selects the original chip family, which knows three codes
    the newer variants do not.
    """
    return _lookup(_VERBOSE, reason, classic)


def reset_reason_short(reason: int, classic: bool = True) -> str:
    """Return the symbolic name of a reset reason code."""
    return _lookup(_SHORT, reason, classic)