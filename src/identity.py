"""Identity keys: canonical, case-preserving path strings that identify one logical image."""

import unicodedata


def canonicalize(path: str) -> str:
    """
    Canonical identity key for a path-like string.
    Backslashes become forward slashes and the text is NFC-composed.
    Letter case is preserved: "Foo/Bar.JPG" and "foo/bar.jpg" are different keys.
    """
    return unicodedata.normalize("NFC", (path or "").replace("\\", "/"))


def segments(key: str) -> list[str]:
    """Non-empty path segments of a key."""
    return [part for part in key.split("/") if part]


def last_segment(key: str) -> str:
    """File name part of a key (the key itself when it has no separator)."""
    parts = segments(key)
    return parts[-1] if parts else key


def directory_of(key: str) -> str:
    """Directory part including the trailing slash, or "" for top-level keys."""
    idx = key.rfind("/")
    return key[: idx + 1] if idx >= 0 else ""


def split_extension(name: str) -> tuple[str, str]:
    """Split "photo.TIFF" into ("photo", "tiff"). Names without a dot have no extension."""
    idx = name.rfind(".")
    if idx <= 0:
        return name, ""
    return name[:idx], name[idx + 1 :].lower()
