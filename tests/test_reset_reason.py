import pytest

from dtukit.reset_reason import Chip, reset_reason_short, reset_reason_verbose


@pytest.mark.parametrize(
    "reason, short, verbose",
    [
        (1, "POWERON_RESET", "Vbat power on reset"),
        (3, "SW_RESET", "Software reset digital core"),
        (12, "SW_CPU_RESET", "Software reset CPU"),
        (15, "RTCWDT_BROWN_OUT_RESET", "Reset when the vdd voltage is not stable"),
        (16, "RTCWDT_RTC_RESET", "RTC Watch dog reset digital core and rtc module"),
    ],
)
def test_known_reasons(reason, short, verbose):
    for chip in Chip:
        assert reset_reason_short(reason, chip) == short
        assert reset_reason_verbose(reason, chip) == verbose


@pytest.mark.parametrize("reason", [4, 6, 14])
def test_classic_only_codes(reason):
    assert reset_reason_short(reason, Chip.ESP32) != "NO_MEAN"
    for chip in (Chip.ESP32S2, Chip.ESP32S3, Chip.ESP32C3):
        assert reset_reason_short(reason, chip) == "NO_MEAN"
        assert reset_reason_verbose(reason, chip) == "NO_MEAN"


def test_specific_classic_code():
    assert reset_reason_short(14, Chip.ESP32) == "EXT_CPU_RESET"
    assert reset_reason_verbose(14, Chip.ESP32) == "for APP CPU, reset by PRO CPU"


@pytest.mark.parametrize("reason", [0, 2, 17, 255])
def test_unknown_reasons(reason):
    assert reset_reason_short(reason) == "NO_MEAN"
    assert reset_reason_verbose(reason) == "NO_MEAN"


@pytest.mark.parametrize("chip", list(Chip))
def test_short_and_verbose_agree_on_known(chip):
    for reason in range(0, 20):
        short_unknown = reset_reason_short(reason, chip) == "NO_MEAN"
        verbose_unknown = reset_reason_verbose(reason, chip) == "NO_MEAN"
        assert short_unknown == verbose_unknown