import pytest

from sitetrack.common.enums import TaskStatus
from sitetrack.common.exceptions import BadRequestError
from sitetrack.core.tracking.progress import clean_progress_input, derive_status


@pytest.mark.parametrize(
    ("progress", "expected"),
    [
        (0, TaskStatus.PLANNED),
        (1, TaskStatus.IN_PROGRESS),
        (99, TaskStatus.IN_PROGRESS),
        (100, TaskStatus.COMPLETED),
    ],
)
def test_derive_status(progress, expected):
    assert derive_status(progress) == expected


def test_clean_progress_input_strips_comment():
    assert clean_progress_input(60, "  Walls framed  ") == "Walls framed"


@pytest.mark.parametrize("comment", ["", "   ", None])
def test_blank_comment_rejected(comment):
    with pytest.raises(BadRequestError):
        clean_progress_input(50, comment)


@pytest.mark.parametrize("progress", [-1, 101])
def test_out_of_range_progress_rejected(progress):
    with pytest.raises(BadRequestError) as exc:
        clean_progress_input(progress, "Update")
    assert exc.value.status_code == 400
