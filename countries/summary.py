import io
import logging
import os
import tempfile

from PIL import Image, ImageDraw, ImageFont

from .errors import ArtifactRenderFailed
from .utils import get_summary_image_path

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 1000, 600
BACKGROUND = "#0b1220"
NO_DATA = "No GDP data available"


def _font(size, bold=False):
    names = ("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf", "arial.ttf")
    for name in names:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def format_gdp(value):
    """Group thousands, keep at most two decimals; a missing value reads ``null``."""
    if value is None:
        return "null"
    text = f"{value:,.2f}"
    return text.rstrip("0").rstrip(".")


def ranked_lines(top5):
    return [
        f"{rank}. {country.name} — {format_gdp(country.estimated_gdp)}"
        for rank, country in enumerate(top5, start=1)
    ]


def render_summary(total, top5, timestamp):
    """
    Draw the 1000x600 summary image and return it as PNG bytes.

    ``top5`` holds objects with ``name`` and ``estimated_gdp`` in rank order;
    when it is empty a single fallback line replaces the ranking.
    """
    if hasattr(timestamp, "isoformat"):
        timestamp = timestamp.isoformat()

    img = Image.new("RGB", (WIDTH, HEIGHT), color=BACKGROUND)
    draw = ImageDraw.Draw(img)

    draw.text((40, 30), "Countries Summary", fill="#ffffff", font=_font(36, bold=True))
    body = _font(20)
    draw.text((40, 90), f"Total countries: {total}", fill="#d1d5db", font=body)
    draw.text((40, 120), f"Last refresh: {timestamp}", fill="#d1d5db", font=body)
    draw.text((40, 170), "Top 5 by estimated GDP", fill="#ffffff", font=_font(22))

    rows = _font(18)
    lines = ranked_lines(top5) or [NO_DATA]
    y = 210
    for line in lines:
        draw.text((40, y), line, fill="#cbd5e1", font=rows)
        y += 34

    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def generate_summary_image(total, top5, timestamp, path=None):
    """
    Render the summary and replace the cached image with it.

    The bytes go to a temporary file next to the target first, so readers
    never see a half-written image. Any failure is raised as
    ArtifactRenderFailed.
    """
    try:
        path = path or get_summary_image_path()
        data = render_summary(total, top5, timestamp)
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path) or ".", suffix=".png.tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    except Exception as exc:
        raise ArtifactRenderFailed(path, str(exc)) from exc
    logger.info("Summary image written to %s", path)
    return path
