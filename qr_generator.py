import base64
import io
import logging
import os
import time

import qrcode
from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

# (pixel size, quiet-zone modules, logo share of the code, padding around the logo, border colour)
SCREEN_PRESET = (400, 3, 0.18, 20, '#E0E0E0')
PRINT_PRESET = (600, 4, 0.16, 30, '#CCCCCC')


def martyr_page_url(site_url: str, martyr_id: str, timestamp: int = None) -> str:
    # الطابع الزمني يجعل كل رمز فريداً
    timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
    return f"{site_url.rstrip('/')}/martyr/{martyr_id}?t={timestamp}"


def _load_logo(logo_path: str):
    if not logo_path or not os.path.exists(logo_path):
        logger.warning("Logo '%s' not found, generating QR code without logo", logo_path)
        return None
    try:
        return Image.open(logo_path).convert("RGBA")
    except OSError as e:
        logger.warning("Failed to load logo '%s': %s", logo_path, e)
        return None


def generate_qr_image(data: str, logo_path: str = None, print_quality: bool = False) -> Image.Image:
    """
    Builds a high error-correction QR code and centres the logo on a white
    square so the code stays scannable.
    """
    size, border, logo_share, padding, border_colour = PRINT_PRESET if print_quality else SCREEN_PRESET

    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_H, border=border, box_size=10)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    img = img.resize((size, size), Image.NEAREST)

    logo = _load_logo(logo_path)
    if logo is None:
        return img

    logo_size = int(size * logo_share)
    space = logo_size + padding
    space_xy = (size - space) // 2
    draw = ImageDraw.Draw(img)
    draw.rectangle([space_xy, space_xy, space_xy + space, space_xy + space], fill='#FFFFFF', outline=border_colour)

    logo = logo.resize((logo_size, logo_size), Image.LANCZOS)
    logo_xy = (size - logo_size) // 2
    img.paste(logo, (logo_xy, logo_xy), logo)
    return img


def image_to_png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_martyr_qr(martyr_id: str, site_url: str, logo_path: str = None, print_quality: bool = True) -> str:
    """
    Returns the martyr's QR code as a PNG data URL, ready to be stored in
    the martyr document's qrCode field.
    """
    img = generate_qr_image(martyr_page_url(site_url, martyr_id), logo_path, print_quality)
    encoded = base64.b64encode(image_to_png_bytes(img)).decode('ascii')
    return f"data:image/png;base64,{encoded}"


def data_url_to_bytes(data_url: str) -> bytes:
    _, _, encoded = data_url.partition(',')
    return base64.b64decode(encoded)
