import pytest

import utils
import version


@pytest.mark.parametrize("text,expected", [("0", 0), ("42", 42), ("1_000_000", 1000000), (" 7 ", 7)])
def test_parse_digits(text, expected):
    assert utils.parse_digits(text) == expected


@pytest.mark.parametrize("text", ["", "-1", "_1", "1.5", "abc", None])
def test_parse_digits_rejects(text):
    with pytest.raises(ValueError):
        utils.parse_digits(text)


@pytest.mark.parametrize("text,expected", [
    ("0", 0),
    ("12", 12),
    ("1_024", 1024),
    ("1K", 1024),
    ("1.50K", 1536),
    ("2M", 2 * 1024 ** 2),
    (5, 5),
])
def test_parse_count(text, expected):
    assert utils.parse_count(text) == expected


@pytest.mark.parametrize("text", ["", "1.5", "K", "12X", "1.2.3K", None])
def test_parse_count_rejects(text):
    with pytest.raises(ValueError):
        utils.parse_count(text)


def test_version_info():
    info = version.get_version_info()
    assert info["version"] == version.__version__
    assert info["app_name"] == "ZpoolKit"
