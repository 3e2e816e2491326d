"""Legacy raster (TIFF/BMP) to PNG conversion with Pillow."""

import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from src.identity import canonicalize, split_extension
from src.models import Attachment
from src.pipeline.scan import ConversionResult, FileDescriptor

log = logging.getLogger("photo_judge.conversion")


class PillowConverter:
    """
    Decodes a scanned legacy raster file and re-encodes it as PNG.
    Failures come back as a ConversionResult error so the record keeps a diagnostic.
    """

    def __init__(self, max_side: int | None = None):
        self.max_side = max_side

    def convert(self, descriptor: FileDescriptor) -> ConversionResult:
        key = canonicalize(descriptor.path or descriptor.name)
        if descriptor.data is None:
            if not descriptor.data_ref:
                return ConversionResult(error=f"No content to convert for {descriptor.name} ({key})")
            source = Path(descriptor.data_ref)
        else:
            source = BytesIO(descriptor.data)

        try:
            with Image.open(source) as im:
                try:
                    im = ImageOps.exif_transpose(im)
                except (OSError, ValueError, AttributeError):
                    pass
                if self.max_side:
                    im.thumbnail((self.max_side, self.max_side), Image.Resampling.LANCZOS)
                if im.mode not in ("RGB", "RGBA", "L", "LA"):
                    im = im.convert("RGBA")
                out = BytesIO()
                im.save(out, format="PNG")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            log.debug("Pillow conversion failed for %s: %s", key, exc)
            return ConversionResult(error=f"Conversion to PNG failed for {descriptor.name} ({key}): {exc}")

        base, _ = split_extension(descriptor.name)
        data = out.getvalue()
        log.debug("Converted %s to PNG (%d bytes)", key, len(data))
        return ConversionResult(preview=Attachment(f"{base}.png", key, "image/png", len(data), data))
