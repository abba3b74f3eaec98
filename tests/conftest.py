import pytest

from jpegls_image_tester.anymap_file import write_anymap_file

from sample_pictures import MockCodec, make_image


@pytest.fixture
def mock_codec():
    return MockCodec()


@pytest.fixture
def write_picture(tmpdir):
    """
    Returns a function which writes a noise picture to a file (relative to
    tmpdir) and returns (filename, image).
    """

    def write_picture(
        name, width=4, height=2, component_count=3, bits_per_sample=8, seed=0
    ):
        filename = str(tmpdir.join(name))
        image = make_image(width, height, component_count, bits_per_sample, seed)
        write_anymap_file(image, filename)
        return filename, image

    return write_picture
