"""
Image Service - Business logic for HTTP image processing.

Decodes an uploaded image into an ImageSession, runs an ordered list of
operations against it and encodes the result.
"""

import inspect
import logging
import time
from typing import Any, Callable, Dict, Optional

from imagemanip.config import Settings
from imagemanip.core.constants import ImageConstants
from imagemanip.core.enums import ImageType
from imagemanip.core.exceptions import InputValidationError, InvalidOperation, InvalidStyleOption
from imagemanip.core.image.backend import RasterBackend
from imagemanip.core.image.converters import ImageConverters
from imagemanip.core.image_session import ImageSession
from imagemanip.schemas.image import (
    ImageInfoResponse,
    Operation,
    OperationResult,
    ProcessRequest,
    ProcessResponse,
)

logger = logging.getLogger(__name__)


class ImageService:
    """
    Service for running session operations on uploaded images.

    Operations are looked up by name in a dispatch table; params are bound to
    the session method's signature before anything runs.
    """

    # Operation name -> ImageSession method
    OPERATIONS = {
        "resize": "resize",
        "strict_resize": "strict_resize",
        "crop": "crop",
        "resize_to_height": "resize_to_height",
        "resize_to_width": "resize_to_width",
        "resize_scale": "resize_scale",
        "rotate": "rotate",
        "flip": "flip",
        "frame": "frame",
        "fill": "fill",
        "color_to_transparent": "color_to_transparent",
        "text": "text",
    }

    def __init__(self, backend: RasterBackend, settings: Settings):
        """
        Initialize image service.

        Args:
            backend: Raster backend shared by all sessions
            settings: Application settings
        """
        self.backend = backend
        self.settings = settings
        self._special: Dict[str, Callable[[ImageSession, Dict[str, Any]], None]] = {
            "filter": self._apply_filter,
            "watermark": self._apply_watermark,
            "convert": self._apply_convert,
        }

    def _decode_payload(self, payload: str) -> bytes:
        data = ImageConverters.from_base64(payload)
        limit = self.settings.image.max_upload_size_mb * 1024 * 1024
        if len(data) > limit:
            raise InputValidationError(
                f"Image payload is {len(data)} bytes, limit is {limit} bytes",
                {"size": len(data), "limit": limit},
            )
        return data

    def new_session(self) -> ImageSession:
        return ImageSession(backend=self.backend, settings=self.settings)

    def inspect(self, payload: str) -> ImageInfoResponse:
        """Decode an image and report its dimensions and format."""
        with self.new_session() as session:
            session.load_bytes(self._decode_payload(payload), source="<upload>")
            return ImageInfoResponse(
                width=session.width,
                height=session.height,
                type=session.type.value,
                mime=session.mime,
                supports_alpha=session.format.supports_alpha,
            )

    def process(self, request: ProcessRequest) -> ProcessResponse:
        """
        Run request.operations in order and encode the result.

        Raises:
            InvalidOperation: Unknown operation name
            InvalidStyleOption: Params not accepted by the operation
            InputValidationError: More than api.max_operations operations
        """
        limit = self.settings.api.max_operations
        if len(request.operations) > limit:
            raise InputValidationError(
                f"Request has {len(request.operations)} operations, limit is {limit}",
                {"count": len(request.operations), "limit": limit},
            )

        start = time.perf_counter()
        output_type = ImageType.parse(request.output_format) if request.output_format else None

        with self.new_session() as session:
            session.load_bytes(self._decode_payload(request.image), source="<upload>")
            steps = [self.apply(session, operation) for operation in request.operations]

            final_type = output_type or session.output_type
            encoded = session.to_bytes(quality=request.quality, image_type=final_type)
            response = ProcessResponse(
                success=True,
                image=ImageConverters.to_base64(encoded),
                width=session.width,
                height=session.height,
                type=final_type.value,
                mime=ImageConstants.MIME_TYPES.get(final_type, ImageConstants.DEFAULT_MIME),
                steps=steps,
                processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
            )

        logger.info(
            f"Processed {len(request.operations)} operation(s) -> "
            f"{response.width}x{response.height} {response.type} in {response.processing_time_ms} ms"
        )
        return response

    def apply(self, session: ImageSession, operation: Operation) -> OperationResult:
        """Run one operation against the session."""
        name = operation.op.strip().lower()
        params = dict(operation.params)

        if name in self._special:
            self._special[name](session, params)
        elif name in self.OPERATIONS:
            method = getattr(session, self.OPERATIONS[name])
            args, kwargs = self._bind(name, method, params)
            method(*args, **kwargs)
        else:
            raise InvalidOperation(operation.op)

        placement = None
        if name == "text" and session.last_text_placement is not None:
            placement = session.last_text_placement.model_dump()
        elif name == "watermark" and session.last_watermark_placement is not None:
            placement = session.last_watermark_placement.model_dump()

        logger.debug(f"Applied {name}: {session.width}x{session.height}")
        return OperationResult(op=name, width=session.width, height=session.height, placement=placement)

    @staticmethod
    def _bind(name: str, method: Callable, params: Dict[str, Any]):
        try:
            bound = inspect.signature(method).bind(**params)
        except TypeError as e:
            raise InvalidStyleOption(f"Invalid params for {name}: {e}", {"operation": name}) from e
        return bound.args, bound.kwargs

    @staticmethod
    def _apply_filter(session: ImageSession, params: Dict[str, Any]) -> None:
        kind = params.pop("type", None) or params.pop("kind", None)
        if kind is None:
            raise InvalidStyleOption("filter requires a 'type'", {"operation": "filter"})
        args = params.pop("args", [])
        if params:
            raise InvalidStyleOption(f"Unknown filter params: {sorted(params)}", {"operation": "filter"})
        if not isinstance(args, list):
            args = [args]
        session.filter(kind, *args)

    def _apply_watermark(self, session: ImageSession, params: Dict[str, Any]) -> None:
        payload: Optional[str] = params.pop("image", None)
        if payload is None:
            raise InvalidStyleOption("watermark requires a base64 'image'", {"operation": "watermark"})

        with self.new_session() as asset:
            asset.load_bytes(self._decode_payload(payload), source="<watermark>")
            session.watermark(asset, **params)

    @staticmethod
    def _apply_convert(session: ImageSession, params: Dict[str, Any]) -> None:
        image_type = params.pop("type", None) or params.pop("format", None)
        if image_type is None:
            raise InvalidStyleOption("convert requires a 'type'", {"operation": "convert"})
        if params:
            raise InvalidStyleOption(f"Unknown convert params: {sorted(params)}", {"operation": "convert"})
        session.convert = image_type
