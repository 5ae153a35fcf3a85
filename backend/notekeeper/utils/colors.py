import re

DEFAULT_COLOR = "ffffff"

_HEX6 = re.compile(r"^[0-9a-f]{6}$")


def normalize_color(value: str) -> str:
    """Strip a leading '#' and lowercase; the stored form is always bare hex.

    >>> normalize_color("#AB12EF")
    'ab12ef'
    """
    bare = value.strip().lower()
    if bare.startswith("#"):
        bare = bare[1:]
    if not _HEX6.match(bare):
        raise ValueError("Color must be a 6-digit hex value")
    return bare


def display_color(stored: str | None) -> str:
    return f"#{stored or DEFAULT_COLOR}"
