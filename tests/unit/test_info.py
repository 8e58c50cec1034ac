import pytest

from powercontent import __version__
from powercontent.info import info

pytestmark = pytest.mark.unit


def test_extension_descriptor():
    descriptor = info()

    assert list(descriptor) == ["Name", "Version", "Author", "Copyright"]
    assert descriptor["Name"] == "PowerContent"
    assert descriptor["Version"] == __version__ == "1.0"
    assert "NXC" in descriptor["Copyright"]
