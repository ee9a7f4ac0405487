"""
So Quotable Backend — Cloudinary Transformation Helpers
========================================================

Small builders for Cloudinary delivery URLs. Each helper returns one
transformation component; `build_image_url` joins components with "/"
in the order given:

    build_image_url(
        "so-quotable/people/einstein",
        [resize_image(800, 600), add_text_overlay("Hello"), optimize_image()],
        "demo",
    )
    → https://res.cloudinary.com/demo/image/upload/
          w_800,h_600,c_fill/l_text:Arial_48:Hello/f_auto,q_auto/so-quotable/people/einstein

Invalid arguments raise ValidationError so the HTTP layer answers 400.
"""

from typing import List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from quotable.exceptions import ValidationError
from quotable.schemas.image import QuoteCardRequest

CLOUDINARY_DELIVERY_BASE = "https://res.cloudinary.com"

# Characters encodeURIComponent leaves alone, beyond alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


def build_image_url(
    cloudinary_id: str, transformations: Sequence[str], cloud_name: str
) -> str:
    public_id = (cloudinary_id or "").strip()
    cloud = (cloud_name or "").strip()
    if not public_id:
        raise ValidationError(message="cloudinaryId is required", field="cloudinary_id")
    if not cloud:
        raise ValidationError(message="cloudName is required", field="cloud_name")

    base = f"{CLOUDINARY_DELIVERY_BASE}/{cloud}/image/upload"
    if not transformations:
        return f"{base}/{public_id}"
    return f"{base}/{'/'.join(transformations)}/{public_id}"


def resize_image(width: int, height: int, crop: str = "fill") -> str:
    if width <= 0:
        raise ValidationError(message="Width must be positive", field="width")
    if height <= 0:
        raise ValidationError(message="Height must be positive", field="height")
    return f"w_{width},h_{height},c_{crop}"


def optimize_image(format: str = "auto", quality: Union[int, str] = "auto") -> str:
    if isinstance(quality, int) and not 1 <= quality <= 100:
        raise ValidationError(message="Quality must be between 1 and 100", field="quality")
    return f"f_{format},q_{quality}"


def add_background_overlay(opacity: int, color: str = "black") -> str:
    """Colored layer behind overlaid text for contrast."""
    if not 0 <= opacity <= 100:
        raise ValidationError(message="Opacity must be between 0 and 100", field="opacity")
    return f"l_{color},e_colorize:{opacity},fl_layer_apply"


def add_text_overlay(
    text: str,
    font_family: str = "Arial",
    font_size: int = 48,
    font_weight: Optional[str] = None,
    color: Optional[str] = None,
    gravity: Optional[str] = None,
    y_offset: Optional[int] = None,
    x_offset: Optional[int] = None,
    max_width: Optional[int] = None,
) -> str:
    """
    Text layer. The text is percent-encoded like JavaScript's
    encodeURIComponent; max_width enables wrapping via c_fit.

        add_text_overlay("Quote text here", font_family="Times", font_size=64,
                         font_weight="bold", color="ffffff", gravity="center",
                         max_width=800)
        → l_text:Times_64_bold:Quote%20text%20here,co_rgb:ffffff,g_center,w_800,c_fit
    """
    font_spec = f"{font_family}_{font_size}"
    if font_weight and font_weight != "normal":
        font_spec += f"_{font_weight}"

    encoded = quote(text.strip(), safe=_URI_COMPONENT_SAFE)
    parts: List[str] = [f"l_text:{font_spec}:{encoded}"]
    if color:
        parts.append(f"co_rgb:{color}")
    if gravity:
        parts.append(f"g_{gravity}")
    if y_offset is not None:
        parts.append(f"y_{y_offset}")
    if x_offset is not None:
        parts.append(f"x_{x_offset}")
    if max_width is not None:
        parts.append(f"w_{max_width}")
        parts.append("c_fit")
    return ",".join(parts)


def build_quote_card(request: QuoteCardRequest, cloud_name: str) -> Tuple[str, str]:
    """
    Composes resize → overlay → text → optimize over a base image.

    Returns (url, transformation chain). The overlay is skipped when
    overlay_opacity is None.
    """
    chain = [resize_image(request.width, request.height, request.crop)]
    if request.overlay_opacity is not None:
        chain.append(add_background_overlay(request.overlay_opacity, request.overlay_color))
    chain.append(
        add_text_overlay(
            request.text,
            font_family=request.font_family,
            font_size=request.font_size,
            font_weight=request.font_weight,
            color=request.color,
            gravity=request.gravity,
            y_offset=request.y_offset,
            x_offset=request.x_offset,
            max_width=request.max_width,
        )
    )
    chain.append(optimize_image(request.format, request.quality))
    return build_image_url(request.cloudinary_id, chain, cloud_name), "/".join(chain)
