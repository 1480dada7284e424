"""
Video to audio conversion utilities.

Uploaded videos are converted locally with the `pydub` library, which in
turn shells out to ``ffmpeg`` and probes the input with ``ffprobe``.  The
output is a mono, low-bitrate MP3 that is small enough to upload quickly and
that the speech recogniser accepts as-is.

pydub only lets the ffmpeg executable be set directly; ffprobe is always
looked up on ``PATH``.  :func:`use_binaries` therefore also puts the
directories of the configured executables on ``PATH``.  It is called once
when the app is created.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from pydub import AudioSegment

from .exceptions import TranscodeError

logger = logging.getLogger(__name__)


SUPPORTED_MIMETYPES = ("video/mp4", "video/x-matroska")

# Container extension used when saving an upload of a given MIME type.
EXTENSIONS = {"video/mp4": ".mp4", "video/x-matroska": ".mkv"}


def is_supported_video(
    mimetype: Optional[str], allowed: Iterable[str] = SUPPORTED_MIMETYPES
) -> bool:
    """Check whether ``mimetype`` is one of the accepted video containers."""
    return bool(mimetype) and mimetype in tuple(allowed)


def extension_for(mimetype: str) -> str:
    """Return the file extension used to store a video of ``mimetype``."""
    return EXTENSIONS.get(mimetype, ".mp4")


def use_binaries(
    ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None
) -> None:
    """Point pydub at configured ffmpeg/ffprobe executables.

    Both directories are prepended to ``PATH`` (once), so a sibling
    ``ffprobe`` next to a configured ``ffmpeg`` is found as well.
    """
    if not ffmpeg_path and not ffprobe_path:
        return
    if ffmpeg_path:
        AudioSegment.converter = ffmpeg_path
    search_path = os.environ.get("PATH", "").split(os.pathsep)
    for binary in (ffprobe_path, ffmpeg_path):
        if not binary:
            continue
        directory = os.path.dirname(os.path.abspath(binary))
        if directory not in search_path:
            search_path.insert(0, directory)
            logger.info("Added %s to PATH for the transcoder", directory)
    os.environ["PATH"] = os.pathsep.join(search_path)


def convert_to_mp3(
    video_path: str,
    output_path: str,
    *,
    channels: int = 1,
    bitrate: str = "64k",
    ffmpeg_path: Optional[str] = None,
    ffprobe_path: Optional[str] = None,
) -> str:
    """Extract the audio track of a video into a mono MP3 file.

    pydub runs ffmpeg without a timeout, so this call cannot be interrupted
    once started; the pipeline deadline is only checked before and after it.

    Args:
        video_path: Path to the source video (MP4 or MKV).
        output_path: Where to write the MP3.  Parent directories are created
            as needed.
        channels: Number of output audio channels.
        bitrate: Target MP3 bitrate in ffmpeg notation, e.g. ``64k``.
        ffmpeg_path: Optional path to the ffmpeg executable.
        ffprobe_path: Optional path to the ffprobe executable.

    Returns:
        ``output_path``.

    Raises:
        TranscodeError: If ffmpeg is missing or the video cannot be decoded
            or encoded.
    """
    use_binaries(ffmpeg_path, ffprobe_path)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    try:
        audio = AudioSegment.from_file(video_path)
        audio = audio.set_channels(channels)
        audio.export(output_path, format="mp3", bitrate=bitrate)
    except Exception as exc:
        logger.error("Failed to convert %s to MP3: %s", video_path, exc)
        raise TranscodeError(video_path, exc) from exc
    logger.info(
        "Converted %s to %s (%s channel(s), %s)",
        video_path,
        output_path,
        channels,
        bitrate,
    )
    return output_path


def cleanup_temp_file(path: Optional[str]) -> None:
    """Remove a local file if it exists.

    Deletion is best-effort: a failure is logged and otherwise ignored.

    Args:
        path: Path to the file.  Nothing happens if ``path`` is ``None`` or
            the file does not exist.
    """
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)
