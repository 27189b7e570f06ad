"""
Frame output: PNG stills, GIF loops and ffmpeg video.

Video frames are piped to ffmpeg as raw RGB over stdin; nothing is written
to disk in between.
"""

import subprocess
from pathlib import Path
from typing import Iterable, Iterator

import numpy as np
from PIL import Image


# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def to_image(frame: np.ndarray, scale: int = 1) -> Image.Image:
    """
    Wrap a uint8 frame in a PIL image, upscaled by an integer factor.

    Upscaling is nearest-neighbour only so the pixel grid stays crisp.
    """
    if scale < 1:
        raise ValueError(f"scale must be >= 1, got {scale}")
    img = Image.fromarray(np.ascontiguousarray(frame))
    if scale > 1:
        img = img.resize((img.width * scale, img.height * scale), Image.NEAREST)
    return img


def save_image(frame: np.ndarray, output_path: Path, scale: int = 1) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    to_image(frame, scale).save(output_path)
    return output_path


def save_gif(
    frames: Iterable[np.ndarray],
    output_path: Path,
    fps: int = 30,
    scale: int = 1,
    progress_callback: callable = None,
    total_frames: int | None = None,
) -> Path:
    """
    Write frames as a looping GIF.

    RGBA frames keep their transparency through PIL's palette conversion.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    images = []
    for i, frame in enumerate(frames):
        images.append(to_image(frame, scale))
        if progress_callback and total_frames:
            progress_callback(i + 1, total_frames)

    if not images:
        raise ValueError("save_gif needs at least one frame")

    images[0].save(
        output_path,
        save_all=True,
        append_images=images[1:],
        duration=max(1, round(1000 / fps)),
        loop=0,
        disposal=2,
    )
    return output_path


def build_ffmpeg_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "high",
) -> list:
    if quality not in QUALITY_PRESETS:
        raise ValueError(
            f"Unknown quality {quality!r}, expected one of {sorted(QUALITY_PRESETS)}"
        )
    preset, crf, pix_fmt = QUALITY_PRESETS[quality]
    return [
        "ffmpeg", "-y",
        # Raw video input from pipe
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
        "-movflags", "+faststart",
        str(output_path),
    ]


def encode_video(
    frame_iterator: Iterator,
    output_path: Path,
    width: int = 1920,
    height: int = 1080,
    fps: int = 60,
    quality: str = "high",
    total_frames: int | None = None,
    progress_callback: callable = None,
) -> Path:
    """
    Encode frames to an H.264 MP4.

    Args:
        frame_iterator: Yields (H, W, 3) uint8 arrays. RGBA frames have
            their alpha channel dropped.
        output_path: Output MP4 path.
        width: Frame width.
        height: Frame height.
        fps: Frames per second.
        quality: "high", "medium", or "fast".
        total_frames: Total frame count for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the output file.

    Raises:
        RuntimeError: ffmpeg exited non-zero.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = build_ffmpeg_command(output_path, width, height, fps, quality)

    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

    frame_count = 0
    try:
        for frame in frame_iterator:
            if frame.shape[-1] == 4:
                frame = frame[..., :3]
            proc.stdin.write(np.ascontiguousarray(frame).tobytes())
            frame_count += 1

            if progress_callback and total_frames:
                progress_callback(frame_count, total_frames)

    except BrokenPipeError:
        # ffmpeg died early; its stderr is reported below
        pass
    finally:
        if proc.stdin:
            proc.stdin.close()

    proc.wait()

    if proc.returncode != 0:
        stderr = proc.stderr.read().decode("utf-8", errors="replace")
        error_lines = [
            line for line in stderr.split("\n")
            if "error" in line.lower() or "invalid" in line.lower()
        ]
        error_msg = "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]
        raise RuntimeError(
            f"ffmpeg exited with code {proc.returncode}: {error_msg}"
        )

    return output_path
