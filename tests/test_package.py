"""Tests for the livecursor top-level package."""

import pytest

import livecursor


class TestPackage:
    def test_version(self) -> None:
        assert livecursor.__version__ == "0.1.0"

    def test_lazy_exports_resolve(self) -> None:
        for name in livecursor.__all__:
            assert getattr(livecursor, name) is not None

    def test_lazy_export_is_same_object(self) -> None:
        from livecursor.reactive.observer import LiveQueryObserver

        assert livecursor.LiveQueryObserver is LiveQueryObserver

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            livecursor.DoesNotExist  # noqa: B018
