"""Test wifi-radar package metadata."""

import wifiradar


def test_version() -> None:
    """Test that version is defined."""
    assert hasattr(wifiradar, "__version__")
    assert isinstance(wifiradar.__version__, str)
    assert wifiradar.__version__ == "0.1.0"
