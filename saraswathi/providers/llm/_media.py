"""Image MIME sniffing shared by the vision-capable adapters."""


def detect_media_type(image_bytes: bytes, fallback: str = "image/jpeg") -> str:
    """Return the MIME type of *image_bytes* from its magic bytes.

    PNG starts with 89 50 4E 47, WEBP with RIFF....WEBP, JPEG with FF D8.
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    return fallback
