# tests/test_utils.py
from datetime import datetime, timedelta

import pytest

from errors import InvalidInput
from responses import APIModel
from utils import check_pagination, pagination, time_ago

NOW = datetime(2024, 3, 10, 12, 0, 0)


@pytest.mark.parametrize("delta, expected", [
    (timedelta(seconds=30), "0 minutes ago"),
    (timedelta(minutes=1), "1 minute ago"),
    (timedelta(minutes=59), "59 minutes ago"),
    (timedelta(hours=1), "1 hour ago"),
    (timedelta(hours=23, minutes=59), "23 hours ago"),
    (timedelta(days=1), "1 day ago"),
    (timedelta(days=6, hours=23), "6 days ago"),
    (timedelta(days=7), "2024-03-03"),
])
def test_time_ago_breakpoints(delta, expected):
    assert time_ago(NOW - delta, NOW) == expected


def test_pagination_pages_round_up():
    assert pagination(0, 1, 10) == {"total": 0, "page": 1, "pages": 0}
    assert pagination(10, 1, 10)["pages"] == 1
    assert pagination(11, 2, 10)["pages"] == 2


def test_check_pagination_bounds():
    assert check_pagination(3, 20) == (40, 20)
    assert check_pagination(1, 100) == (0, 100)
    for page, limit in [(0, 10), (1, 0), (1, 101), (-1, 5)]:
        with pytest.raises(InvalidInput):
            check_pagination(page, limit)


class _Row:
    def __init__(self, story_id, like_count):
        self.story_id = story_id
        self.like_count = like_count


class _Counts(APIModel):
    story_id: str
    like_count: int


def test_api_model_reads_attributes_and_dumps_camel_case():
    from_row = _Counts.model_validate(_Row("s1", 3))
    assert from_row.model_dump(by_alias=True) == {"storyId": "s1", "likeCount": 3}
    assert _Counts(story_id="s2", like_count=1).like_count == 1
    assert _Counts.model_validate({"storyId": "s3", "likeCount": 0}).story_id == "s3"
