"""Tests for the analysis page's text rendering helpers."""

from ui.analysis_page import format_date, suggestions_html


def test_suggestions_are_escaped():
    rendered = suggestions_html(["Study < 2h & rest", "<b>Sleep</b>"])
    assert "<li>Study &lt; 2h &amp; rest</li>" in rendered
    assert "<li>&lt;b&gt;Sleep&lt;/b&gt;</li>" in rendered
    assert rendered.startswith("<b>Suggestions</b><ul>")


def test_format_date_falls_back_to_raw_text():
    assert format_date("not a date") == "not a date"
