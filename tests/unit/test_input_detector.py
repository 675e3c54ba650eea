import pytest

from processed_or_not.domain.models import InputType
from processed_or_not.services.input_detector import detect_input_type, normalize_key


@pytest.mark.parametrize(
    "raw",
    [
        "87206006",  # EAN-8
        "012345678905",  # UPC-A
        "8720600618161",  # EAN-13
        "18720600618168",  # GTIN-14
        "4006",
        " 8720600618161 ",
        "8720 6006 18161",
    ],
)
def test_detects_barcodes(raw: str) -> None:
    assert detect_input_type(raw) is InputType.BARCODE


@pytest.mark.parametrize(
    "raw",
    ["Hak Chili sin carne", "coca cola zero", "7up", "", "   "],
)
def test_detects_text(raw: str) -> None:
    assert detect_input_type(raw) is InputType.TEXT


def test_numeric_start_with_high_digit_ratio_is_barcode() -> None:
    # 8 Ziffern von 11 Zeichen (0.73), beginnt numerisch
    assert detect_input_type("1234567-8AB") is InputType.BARCODE


def test_normalize_key_strips_barcode_whitespace() -> None:
    assert normalize_key(" 8720 6006 18161 ") == "8720600618161"


def test_normalize_key_collapses_text_whitespace() -> None:
    assert normalize_key("  Hak   Chili  ") == "Hak Chili"
