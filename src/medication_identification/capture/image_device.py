# ============================================================================
# src/medication_identification/capture/image_device.py
# ============================================================================
"""
Capture devices backed by image files or raw bytes (gallery picks, uploads).
"""

import asyncio
import io
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from .collaborators import CaptureDevice
from ..utils.exceptions import DeviceError


def _load(source) -> Image.Image:
    image = Image.open(source)
    image.load()
    return image.convert("RGB")


class ImageFileDevice(CaptureDevice):
    """Returns the image stored at a path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def capture(self) -> Image.Image:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, _load, self.path)
        except PermissionError as e:
            raise DeviceError(f"Cannot read {self.path}: {e}",
                              hint="Allow access to the photo library and try again.") from e
        except FileNotFoundError as e:
            raise DeviceError(f"Image not found: {self.path}",
                              hint="Pick the photo again.") from e
        except (UnidentifiedImageError, OSError) as e:
            raise DeviceError(f"Not a readable image: {self.path}",
                              hint="Use a JPEG or PNG photo of the package.") from e


class ImageBytesDevice(CaptureDevice):
    """Returns an image decoded from bytes (e.g. an HTTP upload)."""

    def __init__(self, data: bytes):
        self.data = data

    async def capture(self) -> Image.Image:
        if not self.data:
            raise DeviceError("Empty image upload", hint="Take the photo again.")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, _load, io.BytesIO(self.data))
        except (UnidentifiedImageError, OSError) as e:
            raise DeviceError(f"Not a readable image: {e}",
                              hint="Use a JPEG or PNG photo of the package.") from e
