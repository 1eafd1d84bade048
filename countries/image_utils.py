import io
import logging
import os

from django.conf import settings
from django.utils import timezone
from PIL import Image, ImageDraw, ImageFont

from .exceptions import SummaryImageNotFound

logger = logging.getLogger(__name__)

CANVAS_SIZE = (800, 500)
TOP_N = 5


class SummaryRenderer:
    """Draws the post-refresh summary PNG and keeps it at a fixed path."""

    def __init__(self, store, path=None):
        self.store = store
        self.path = path or settings.CACHE_IMAGE_PATH

    def artifact_path(self):
        if not os.path.exists(self.path):
            raise SummaryImageNotFound()
        return self.path

    def render(self):
        """Generates a simple PNG summary of current country stats."""
        total_countries = self.store.count()
        top_countries = self.store.top_by_gdp(TOP_N)
        rendered_at = timezone.now()

        img = Image.new('RGB', CANVAS_SIZE, color='white')
        draw = ImageDraw.Draw(img)
        font = ImageFont.load_default()

        y = 50
        draw.text((50, y), "Country Summary", fill=(0, 0, 0), font=font)
        y += 40
        draw.text((50, y), f"Total Countries: {total_countries}", fill=(0, 0, 0), font=font)

        y += 60
        draw.text((50, y), f"Top {TOP_N} Countries by Estimated GDP:", fill=(0, 0, 0), font=font)
        y += 30
        if not top_countries:
            draw.text((70, y), "No GDP data available.", fill=(128, 128, 128), font=font)
        for i, country in enumerate(top_countries, 1):
            line = f"{i}. {country.name} - {country.estimated_gdp:,.2f}"
            draw.text((70, y), line, fill=(0, 0, 0), font=font)
            y += 30

        draw.text((50, 420), f"Last Refresh: {rendered_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
                  fill=(0, 0, 0), font=font)

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        data = buffer.getvalue()

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'wb') as fh:
            fh.write(data)

        logger.info("Summary image written to %s (%d countries)", self.path, total_countries)
        return data
