"""Content-Disposition header building."""

import pytest

from src.api.responses import content_disposition


def test_ascii_name_passes_through() -> None:
    header = content_disposition("notes.pdf", "attachment")

    assert header == "attachment; filename=\"notes.pdf\"; filename*=UTF-8''notes.pdf"


def test_unicode_name_gets_utf8_parameter() -> None:
    header = content_disposition("café.pdf", "inline")

    assert header.startswith('inline; filename="caf?.pdf"')
    assert header.endswith("filename*=UTF-8''caf%C3%A9.pdf")


def test_quotes_are_replaced_in_fallback() -> None:
    assert 'filename="say _hi_.txt"' in content_disposition('say "hi".txt', "attachment")


@pytest.mark.parametrize("name", ["a\r\nSet-Cookie: x=1", "tab\tname", "nul\x00", "del\x7f"])
def test_control_characters_never_reach_the_header(name: str) -> None:
    header = content_disposition(name, "attachment")

    assert not any(ord(c) < 32 or ord(c) == 127 for c in header)
