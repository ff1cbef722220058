from __future__ import annotations
import io
from PIL import Image, UnidentifiedImageError
from entrydesk.config import settings
from entrydesk.errors import InvalidUpload
from entrydesk.services.stages import Stage

FILE_TYPES = ("music", "audio", "video", "photo")

ALLOWED_MIME: dict[str, set[str]] = {
    "video": {"video/mp4", "video/quicktime", "video/webm", "video/x-msvideo"},
    "music": {"audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/aac", "audio/mp4", "audio/x-m4a"},
    "audio": {"audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/aac", "audio/mp4", "audio/x-m4a"},
    "photo": {"image/jpeg", "image/png", "application/pdf"},
}
EXT_FOR_MIME = {
    "video/mp4": "mp4", "video/quicktime": "mov", "video/webm": "webm", "video/x-msvideo": "avi",
    "audio/mpeg": "mp3", "audio/mp3": "mp3", "audio/wav": "wav", "audio/x-wav": "wav",
    "audio/aac": "aac", "audio/mp4": "m4a", "audio/x-m4a": "m4a",
    "image/jpeg": "jpg", "image/png": "png", "application/pdf": "pdf",
}

# purposes that hold one file per entry; a new upload replaces the old one
SINGLE_SLOT_PURPOSES = frozenset({
    "preliminary", "sns_practice_video", "sns_introduction_highlight",
    "semifinals_payment_slip", "payment_slip", "player_photo", "final_player_photo",
})

# stage whose deadline governs a purpose; other purposes back fields of a stage save
PURPOSE_STAGES: dict[str, Stage] = {
    "preliminary": Stage.PRELIMINARY,
    "sns_practice_video": Stage.SNS,
    "sns_introduction_highlight": Stage.SNS,
    "semifinals_payment_slip": Stage.SEMIFINALS,
    "payment_slip": Stage.APPLICATIONS,
    "player_photo": Stage.PROGRAM,
    "final_player_photo": Stage.PROGRAM,
}

def max_bytes(file_type: str) -> int:
    mb = {
        "video": settings.max_video_mb,
        "music": settings.max_audio_mb,
        "audio": settings.max_audio_mb,
        "photo": settings.max_photo_mb,
    }[file_type]
    return mb * 1024 * 1024

def sniff_image_mime(data: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()  # basic integrity
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    return {"JPEG": "image/jpeg", "PNG": "image/png"}.get(fmt)

def check_upload(data: bytes, file_type: str, declared_mime: str | None) -> str:
    """
    Validate an upload against its declared file type and return the mime type to store.

    Raises InvalidUpload with every reason found, not just the first.
    """
    if file_type not in FILE_TYPES:
        raise InvalidUpload(reasons=[f"Unknown file type: {file_type}"])
    reasons: list[str] = []
    mime = (declared_mime or "").split(";")[0].strip().lower()
    if not data:
        reasons.append("The file is empty")
    elif len(data) > max_bytes(file_type):
        reasons.append(f"The file is larger than {max_bytes(file_type) // (1024 * 1024)} MB")
    if file_type == "photo" and mime != "application/pdf" and data:
        sniffed = sniff_image_mime(data)
        if sniffed is None:
            reasons.append("The image could not be read")
        else:
            mime = sniffed
    if mime not in ALLOWED_MIME[file_type]:
        reasons.append(f"Unsupported {file_type} format: {mime or 'unknown'}")
    if reasons:
        raise InvalidUpload(reasons=reasons)
    return mime

def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")
