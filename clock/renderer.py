from __future__ import annotations

import io

from PIL import Image, ImageColor, ImageDraw, ImageFont

from clock.face_geometry import FaceGeometry

_FOREGROUND = (0, 0, 0, 217)
_FOREGROUND_AMBIENT = (128, 128, 128, 191)
_BACKGROUND = (255, 255, 255, 255)
_BACKGROUND_AMBIENT = (0, 0, 0, 255)


def _with_alpha(rgba: tuple[int, int, int, int], alpha: float) -> tuple[int, int, int, int]:
    return rgba[0], rgba[1], rgba[2], int(rgba[3] * alpha)


def _load_font(size: float):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", max(1, int(size)))
    except IOError:
        return ImageFont.load_default()


def render_clock_image(
    face: FaceGeometry, accent: str = "#d32f2f", ambient: bool = False
) -> Image.Image:
    """Draws the face geometry onto a new RGBA image."""
    width, height = int(face.width), int(face.height)
    image = Image.new("RGBA", (width, height), _BACKGROUND_AMBIENT if ambient else _BACKGROUND)
    draw = ImageDraw.Draw(image)

    on_bg = _FOREGROUND_AMBIENT if ambient else _FOREGROUND
    tick_color = _with_alpha(on_bg, 0.6) if ambient else on_bg
    accent_rgb = ImageColor.getrgb(accent)[:3]
    accent_rgba = (*accent_rgb, 255)

    for seg in face.segments:
        if seg.role == "second_hand":
            color = accent_rgba
        elif seg.role.endswith("_tick"):
            color = tick_color
        else:
            color = on_bg
        draw.line([seg.start, seg.end], fill=color, width=max(1, round(seg.width)))

    for circle in face.circles:
        x, y = circle.center
        r = circle.radius
        box = [(x - r, y - r), (x + r, y + r)]
        if circle.role == "face":
            draw.ellipse(box, outline=on_bg, width=max(1, round(circle.width)))
        elif circle.role in ("second_tail", "second_tip"):
            draw.ellipse(box, fill=accent_rgba)
        elif circle.role == "accent_hub":
            draw.ellipse(box, fill=(*accent_rgb, 77 if ambient else 230))
        else:
            draw.ellipse(box, fill=on_bg)

    if face.numerals:
        font = _load_font(face.numerals[0].size)
        for numeral in face.numerals:
            x, y = numeral.position
            bbox = draw.textbbox((0, 0), numeral.text, font=font)
            text_w = bbox[2] - bbox[0]
            text_h = bbox[3] - bbox[1]
            draw.text(
                (x - text_w / 2 - bbox[0], y - text_h / 2 - bbox[1]),
                numeral.text,
                font=font,
                fill=on_bg,
            )

    return image


def render_clock_png(
    face: FaceGeometry, accent: str = "#d32f2f", ambient: bool = False
) -> bytes:
    """Renders the face and returns PNG bytes."""
    buffer = io.BytesIO()
    render_clock_image(face, accent=accent, ambient=ambient).save(buffer, format="PNG")
    return buffer.getvalue()
