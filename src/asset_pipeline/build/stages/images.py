"""
Image minification stage.
"""
import io
import logging

from PIL import Image, UnidentifiedImageError

from ..pipeline import Artifact, Each, StageError

logger = logging.getLogger(__name__)

PILLOW_FORMATS = {
    '.png': 'PNG',
    '.jpg': 'JPEG',
    '.jpeg': 'JPEG',
    '.gif': 'GIF',
}


def _reencode(data: bytes, image_format: str, jpeg_quality: int) -> bytes:
    with Image.open(io.BytesIO(data)) as image:
        options = {'optimize': True}
        if image_format == 'JPEG':
            options['quality'] = jpeg_quality
            options['progressive'] = True
            if image.mode not in ('RGB', 'L', 'CMYK'):
                image = image.convert('RGB')
        elif image_format == 'GIF':
            options['save_all'] = getattr(image, 'is_animated', False)
        out = io.BytesIO()
        image.save(out, format=image_format, **options)
        return out.getvalue()


def optimize_images(jpeg_quality: int = 85) -> Each:
    """Re-encode raster images with Pillow, keeping whichever bytes are smaller.

    Formats Pillow does not handle here (SVG, WebP, ...) pass through unchanged.
    """
    def imagemin(artifact: Artifact) -> Artifact:
        image_format = PILLOW_FORMATS.get(artifact.suffix.lower())
        if image_format is None:
            return artifact
        try:
            optimized = _reencode(artifact.contents, image_format, jpeg_quality)
        except (UnidentifiedImageError, OSError) as e:
            raise StageError(f"Could not optimize image: {e}", path=artifact.path, stage='imagemin')

        original_size = len(artifact.contents)
        if len(optimized) >= original_size:
            logger.debug(f"{artifact.path}: already optimal ({original_size} bytes)")
            return artifact.replace(meta={'saved': 0})
        saved = original_size - len(optimized)
        logger.debug(f"{artifact.path}: saved {saved} bytes")
        return artifact.replace(contents=optimized, meta={'saved': saved})
    return Each(imagemin)
