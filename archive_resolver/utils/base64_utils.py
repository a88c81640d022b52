import base64
import binascii
import logging
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

BASE64_CHARS = set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=-_")


def is_base64_value(value: str) -> bool:
    """
    Check if a value appears to be base64 encoded.

    Args:
        value (str): The value to check.

    Returns:
        bool: True if the value appears to be base64 encoded, False otherwise.
    """
    if value.startswith(("http://", "https://", "ftp://", "ftps://")):
        return False

    if not set(value).issubset(BASE64_CHARS):
        return False

    # Too short to carry a meaningful payload
    if len(value) < 10:
        return False

    return True


def decode_base64_text(encoded: str) -> Optional[str]:
    """
    Decode a base64 payload to UTF-8 text.

    Both the standard and the URL-safe alphabets are accepted and missing
    padding is repaired. Any other deviation makes the payload invalid.

    Args:
        encoded (str): The base64 payload.

    Returns:
        Optional[str]: The decoded text, None if the payload is not valid base64 UTF-8.
    """
    try:
        normalized = "".join(encoded.split()).replace("-", "+").replace("_", "/")

        missing_padding = len(normalized) % 4
        if missing_padding:
            normalized += "=" * (4 - missing_padding)

        decoded_bytes = base64.b64decode(normalized, validate=True)
        return decoded_bytes.decode("utf-8")

    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.debug(f"Failed to decode base64 payload '{encoded[:50]}...': {e}")
        return None


def encode_text_to_base64(text: str, url_safe: bool = False) -> str:
    """
    Encode text to base64.

    Args:
        text (str): The text to encode.
        url_safe (bool): Whether to use URL-safe base64 encoding without padding.

    Returns:
        str: The base64 encoded text.
    """
    text_bytes = text.encode("utf-8")
    if url_safe:
        return base64.urlsafe_b64encode(text_bytes).decode("utf-8").rstrip("=")
    return base64.b64encode(text_bytes).decode("utf-8")


def process_potential_base64_url(url: str) -> str:
    """
    Process a URL that might be base64 encoded. If it's base64 encoded, decode it.
    Otherwise, return the original URL.

    Args:
        url (str): The URL to process.

    Returns:
        str: The processed URL (decoded if it was base64, original otherwise).
    """
    if is_base64_value(url):
        decoded_url = decode_base64_text(url)
        if decoded_url:
            parsed = urlparse(decoded_url)
            if parsed.scheme and parsed.netloc:
                logger.info(f"Successfully decoded base64 URL: {url[:50]}... -> {decoded_url}")
                return decoded_url
        logger.warning(f"URL appears to be base64 but failed to decode: {url[:50]}...")

    return url
