"""GraphicsKit: placement, codecs and bitmap contexts for Pillow and Qt images."""

__version__ = "1.0.0"

from .context import (  # noqa: E402
    AlphaInfo,
    BitmapContext,
    ColorModel,
    ColorSpace,
    InterpolationQuality,
    ParameterPreset,
    create_context,
    create_context_referencing,
    resolve_preset,
)
from .errors import (  # noqa: E402
    ContextCreationError,
    DataErrorReason,
    GraphicsKitError,
    ImageDataError,
    ImageLoadError,
    InferFormatError,
    LoadErrorReason,
    SaliencyUnavailableError,
)
from .formats import ImageFormat  # noqa: E402
from .geometry import ContentMode, Point, Position, Rect, Side, Size  # noqa: E402
from .native import NativeImage  # noqa: E402
from .operations import (  # noqa: E402
    SaliencyType,
    apply_operations,
    configure_saliency_provider,
    cropped,
    embed,
    embed_in_square,
    fill,
    fill_in_square,
    resized,
)

__all__ = [
    "AlphaInfo",
    "BitmapContext",
    "ColorModel",
    "ColorSpace",
    "ContentMode",
    "ContextCreationError",
    "DataErrorReason",
    "GraphicsKitError",
    "ImageDataError",
    "ImageFormat",
    "ImageLoadError",
    "InferFormatError",
    "InterpolationQuality",
    "LoadErrorReason",
    "NativeImage",
    "ParameterPreset",
    "Point",
    "Position",
    "Rect",
    "SaliencyType",
    "SaliencyUnavailableError",
    "Side",
    "Size",
    "apply_operations",
    "configure_saliency_provider",
    "create_context",
    "create_context_referencing",
    "cropped",
    "embed",
    "embed_in_square",
    "fill",
    "fill_in_square",
    "resized",
    "resolve_preset",
]
