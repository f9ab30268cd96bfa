import pytest

from app.core.config import settings
from app.services.pagination import Page, PageRequest


@pytest.mark.parametrize("raw_page", [None, "abc", "0", "-3", "2.5", ""])
def test_invalid_page_becomes_first_page(raw_page):
    assert PageRequest.from_raw(raw_page, None).page == 1


@pytest.mark.parametrize("raw_limit", [None, "abc", "0", "-5"])
def test_invalid_limit_uses_default(raw_limit):
    assert PageRequest.from_raw(None, raw_limit).limit == settings.default_page_size


def test_limit_is_clamped_to_maximum():
    assert PageRequest.from_raw(1, 100000).limit == settings.max_page_size
    assert PageRequest.from_raw(1, 5, max_limit=3).limit == 3


def test_offset():
    assert PageRequest(page=3, limit=20).offset == 40


def test_page_metadata():
    page = Page(items=[1, 2, 3], total=23, page=3, limit=10)
    assert page.count == 3
    assert page.pages == 3
    assert Page(items=[], total=0, page=1, limit=10).pages == 0
    assert Page(items=[], total=20, page=5, limit=10).pages == 2


def test_huge_page_is_clamped_to_an_addressable_offset():
    request = PageRequest.from_raw("99999999999999999999", "10")
    assert request.offset <= 2**63 - 1
    assert request.page > 1
    assert PageRequest.from_raw(str(2**70), "1").offset <= 2**63 - 1
