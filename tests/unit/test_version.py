import re

from verdict_proxy import __version__


def test_version_exists():
    """Test that version is defined"""
    assert __version__ is not None
    assert isinstance(__version__, str)
    assert len(__version__) > 0


def test_version_format():
    """Test that version follows semantic versioning pattern"""
    pattern = r'^\d+\.\d+\.\d+.*'
    assert re.match(pattern, __version__), f"Version '{__version__}' doesn't match expected format"
