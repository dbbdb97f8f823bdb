"""
imagemanip - layout and compositing for raster images.

    from imagemanip import ImageSession

    image = ImageSession.with_image("photo.png")
    image.resize(400, 300).watermark("logo.png", opacity=0.5).save("out/")
"""

__version__ = "1.0.0"

from imagemanip.core.image_session import ImageSession  # noqa: E402

__all__ = ["ImageSession", "__version__"]
