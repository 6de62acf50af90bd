from __future__ import annotations

import pytest

from planmode.utils.slug import generate_slug, is_valid_slug, require_slug


def test_generate_slug_is_twelve_hex_chars() -> None:
    slugs = {generate_slug() for _ in range(50)}

    assert len(slugs) == 50
    for slug in slugs:
        assert len(slug) == 12
        int(slug, 16)


@pytest.mark.parametrize("value", ["", None, "../x", "a b", "a/b", "abc\n", "abc\n\n"])
def test_require_slug_rejects_unsafe_values(value) -> None:
    assert not is_valid_slug(value)
    with pytest.raises(ValueError):
        require_slug(value)


def test_require_slug_returns_value() -> None:
    assert require_slug("abc-123_DEF") == "abc-123_DEF"
