"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import io
import os
import struct
import sys
import zlib

# PIP3 modules
import PIL.Image
import pytest
from loguru import logger

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
def encode_image(image: PIL.Image.Image, image_format: str = "PNG") -> bytes:
	"""
	Encode a PIL image to bytes.

	Args:
		image: PIL image.
		image_format: PIL format name.

	Returns:
		Encoded bytes.
	"""
	buffer = io.BytesIO()
	image.save(buffer, format=image_format)
	return buffer.getvalue()


#============================================
@pytest.fixture
def make_png():
	"""
	Factory for solid-color PNG bytes.
	"""
	def factory(width: int, height: int, color: tuple, mode: str = "RGB") -> bytes:
		with PIL.Image.new(mode, (width, height), color) as image:
			return encode_image(image)
	return factory


#============================================
@pytest.fixture
def decode_png():
	"""
	Factory that decodes raster bytes to a loaded RGB or RGBA image.
	"""
	def factory(data: bytes) -> PIL.Image.Image:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
		return image
	return factory


#============================================
@pytest.fixture
def log_messages():
	"""
	Collect loguru messages at WARNING and above.
	"""
	messages: list[str] = []
	handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING", format="{message}")
	yield messages
	logger.remove(handler_id)


#============================================
def encode_png_header(width: int, height: int) -> bytes:
	"""
	Encode a PNG that declares a size but carries no pixel data.

	Args:
		width: Declared width.
		height: Declared height.

	Returns:
		PNG bytes with IHDR, empty IDAT and IEND chunks.
	"""
	def chunk(kind: bytes, payload: bytes) -> bytes:
		crc = zlib.crc32(kind + payload)
		return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)

	header = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
	return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header) + chunk(b"IDAT", b"") + chunk(b"IEND", b"")


#============================================
@pytest.fixture(scope="session")
def large_gray_png() -> bytes:
	"""
	A 20000x10000 mid-gray PNG, beyond Pillow's default pixel limit.
	"""
	with PIL.Image.new("L", (20000, 10000), 128) as image:
		return encode_image(image)


#============================================
@pytest.fixture
def png_header():
	"""
	Factory for header-only PNG bytes of any declared size.
	"""
	return encode_png_header
