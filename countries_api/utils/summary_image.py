import io
import logging
import os

import dropbox
import dropbox.exceptions
import dropbox.files
from PIL import Image, ImageDraw, ImageFont

from countries_api.config import get_settings
from countries_api.utils.storage import CountryRepository, RefreshMarkerStore

logger = logging.getLogger(__name__)


def get_summary_image_path() -> str:
    return get_settings().summary_image_path


def _load_fonts():
    try:
        return ImageFont.truetype("arial.ttf", 28), ImageFont.truetype("arial.ttf", 20)
    except OSError:
        # Arial is missing on most servers
        default = ImageFont.load_default()
        return default, default


def render_summary_image(total_countries: int, top_countries, last_refresh) -> bytes:
    """
    Draw total countries, the top 5 by estimated GDP and the last refresh
    time onto an 800x500 PNG and return its bytes.
    """
    img = Image.new("RGB", (800, 500), color=(240, 240, 240))
    draw = ImageDraw.Draw(img)
    font_title, font_text = _load_fonts()

    draw.text((50, 40), "Countries Summary", fill="black", font=font_title)
    draw.text((50, 100), f"Total Countries: {total_countries}", fill="black", font=font_text)
    draw.text((50, 140), "Top 5 by Estimated GDP:", fill="black", font=font_text)

    y = 180
    if not top_countries:
        draw.text((70, y), "No GDP data available.", fill="gray", font=font_text)
        y += 30
    for idx, (name, gdp) in enumerate(top_countries, start=1):
        draw.text((70, y), f"{idx}. {name} - {gdp:,.1f}", fill="black", font=font_text)
        y += 30

    refreshed = last_refresh.isoformat() if last_refresh else "never"
    draw.text((50, y + 30), f"Last Refreshed: {refreshed}", fill="gray", font=font_text)

    image_bytes = io.BytesIO()
    img.save(image_bytes, format="PNG")
    return image_bytes.getvalue()


def upload_to_dropbox(png: bytes, token: str, path: str) -> str:
    """Upload the PNG, overwriting any previous one, and return a raw shared link."""
    dbx = dropbox.Dropbox(token)
    dbx.files_upload(png, path, mode=dropbox.files.WriteMode("overwrite"), mute=True)

    # --- Create or retrieve a shareable link ---
    try:
        shared_link_metadata = dbx.sharing_create_shared_link_with_settings(path)
        shared_url = shared_link_metadata.url
    except dropbox.exceptions.ApiError:
        # If link already exists, retrieve it
        links = dbx.sharing_list_shared_links(path=path).links
        if not links:
            raise
        shared_url = links[0].url

    return shared_url.replace("?dl=0", "?raw=1")


def generate_summary_image(db) -> str:
    """
    Render the summary PNG from the committed data, save it locally and,
    when a Dropbox token is configured, upload it as well.
    Returns the local path.
    """
    settings = get_settings()
    countries = CountryRepository(db)

    png = render_summary_image(
        countries.count(),
        countries.top_by_gdp(5),
        RefreshMarkerStore(db).get(),
    )

    path = settings.summary_image_path
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(png)
    logger.info("Summary image written to %s", path)

    if settings.dropbox_token:
        url = upload_to_dropbox(png, settings.dropbox_token, settings.dropbox_path)
        logger.info("Summary image uploaded to Dropbox: %s", url)

    return path
