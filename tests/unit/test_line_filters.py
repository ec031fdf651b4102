"""
Unit tests for chrome-line filtering.
"""

import pytest

from comment_detox.extraction.line_filters import (
    CHROME_PATTERNS,
    LineClassifier,
    collapse_whitespace,
    split_lines,
)


@pytest.mark.unit
class TestSplitLines:
    def test_trims_and_drops_blank_lines(self):
        assert split_lines("  YouTube \n\n  nice video  \n\t\n") == ["YouTube", "nice video"]

    def test_empty_input(self):
        assert split_lines("") == []
        assert split_lines(None) == []

    def test_collapse_whitespace(self):
        assert collapse_whitespace("so   much\tspace here ") == "so much space here"


@pytest.mark.unit
class TestLineClassifier:
    @pytest.fixture
    def classifier(self):
        return LineClassifier(exact_labels=["Delete"])

    @pytest.mark.parametrize(
        "line",
        [
            "YouTube",
            "YouTube comment",
            "Commented on Some Video Title",
            "You commented on Some Video Title",
            "Replied to @someone",
            "10:42 PM • Details",
            "Details",
            "Dec 11, 2025",
            "September 3, 2024",
            "9:05 AM",
            "Delete",
        ],
    )
    def test_chrome_lines(self, classifier, line):
        assert classifier.is_chrome(line)

    @pytest.mark.parametrize(
        "line",
        [
            "you are an idiot",
            "YouTube is great today",
            "I commented on this before",
            "Deleted scenes were better",
        ],
    )
    def test_content_lines(self, classifier, line):
        assert not classifier.is_chrome(line)

    def test_first_content_line_skips_chrome(self, classifier):
        lines = ["YouTube", "Commented on Video", "first real line", "second line", "Delete"]
        assert classifier.first_content_line(lines) == "first real line"

    def test_first_content_line_none_when_all_chrome(self, classifier):
        assert classifier.first_content_line(["YouTube", "Dec 11, 2025", "Delete"]) is None

    def test_extra_labels_are_chrome(self, classifier):
        lines = ["Delete activity item", "the comment"]
        assert classifier.first_content_line(lines, extra_labels=["Delete activity item"]) == "the comment"

    def test_extra_patterns_extend_defaults(self):
        classifier = LineClassifier(extra_patterns=[r"^Kommentiert\b"])
        assert classifier.is_chrome("Kommentiert zu Video")
        assert classifier.is_chrome("YouTube")

    def test_custom_patterns_replace_defaults(self):
        classifier = LineClassifier(patterns=[r"^Header$"])
        assert classifier.is_chrome("Header")
        assert not classifier.is_chrome("YouTube")

    def test_default_patterns_compile(self):
        classifier = LineClassifier()
        assert len(classifier._compiled) == len(CHROME_PATTERNS)
