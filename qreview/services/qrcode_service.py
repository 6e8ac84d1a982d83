import base64
import io

import qrcode
import qrcode.image.svg
from PIL import Image

DEFAULT_PNG_SIZE = 800
MIN_PNG_SIZE = 200
MAX_PNG_SIZE = 2000
PREVIEW_PNG_SIZE = 400
QR_BORDER = 2


class QRCodeService:
    """QR codes pointing visitors at the public review form."""

    @staticmethod
    def clamp_size(raw_size):
        try:
            size = int(raw_size)
        except (TypeError, ValueError):
            size = DEFAULT_PNG_SIZE
        return min(MAX_PNG_SIZE, max(MIN_PNG_SIZE, size))

    @staticmethod
    def _build(url):
        code = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=QR_BORDER)
        code.add_data(url)
        code.make(fit=True)
        return code

    @staticmethod
    def png_bytes(url, size=DEFAULT_PNG_SIZE):
        image = QRCodeService._build(url).make_image(fill_color="black", back_color="white").get_image()
        image = image.convert("RGB").resize((size, size), Image.NEAREST)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def png_data_url(url, size=PREVIEW_PNG_SIZE):
        encoded = base64.b64encode(QRCodeService.png_bytes(url, size)).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    @staticmethod
    def svg_text(url):
        image = QRCodeService._build(url).make_image(image_factory=qrcode.image.svg.SvgPathImage)
        buffer = io.BytesIO()
        image.save(buffer)
        return buffer.getvalue().decode("utf-8")
