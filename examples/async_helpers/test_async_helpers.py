"""Tests for the async-helpers example."""


class TestAsyncHelpersApp:
    """Verify deferred values are substituted into page and layout."""

    def test_values_in_page(self, example_app) -> None:
        assert "<ul><li>Ada</li><li>Grace</li></ul>" in example_app.output

    def test_value_in_layout(self, example_app) -> None:
        assert "<header>Grace</header>" in example_app.output

    def test_failure_renders_empty(self, example_app) -> None:
        assert "<aside></aside>" in example_app.output

    def test_no_placeholders_left(self, example_app) -> None:
        assert "__hbsview_deferred_" not in example_app.output

    def test_failure_reported(self, example_app) -> None:
        assert len(example_app.errors) == 1
        assert example_app.errors[0].helper_name == "weather"
        assert isinstance(example_app.errors[0].__cause__, ConnectionError)
