import pytest


@pytest.fixture
def summary_text():
    return "Meeting summary. " * 10  # 170 characters


@pytest.fixture
def transcript_text():
    return "Speaker 1: We talked about the roadmap in detail.\n" * 30
