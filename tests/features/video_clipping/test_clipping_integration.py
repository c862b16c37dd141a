import shutil
import subprocess

import pytest

from highlighter.core.shared_types import MediaFile, TimeRange
from highlighter.features.video_clipping.data.ffmpeg_adapter import FFmpegClipAdapter
from highlighter.features.video_clipping.domain.models import ClipRequest

FFMPEG = shutil.which("ffmpeg")
FFPROBE = shutil.which("ffprobe")

pytestmark = pytest.mark.skipif(not (FFMPEG and FFPROBE), reason="ffmpeg/ffprobe not installed")


@pytest.fixture
def mock_video_file(tmp_path):
    """
    Generates a 10-second video with a keyframe every second.
    """
    video_path = tmp_path / "clip_source.mp4"
    cmd = [
        FFMPEG, "-y",
        "-f", "lavfi", "-i", "testsrc=duration=10:size=320x240:rate=30",
        "-c:v", "libx264", "-g", "30",
        str(video_path)
    ]
    subprocess.run(cmd, check=True, capture_output=True)
    return video_path


def probe_duration(path) -> float:
    probe_cmd = [
        FFPROBE, "-v", "error", "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1", str(path)
    ]
    result = subprocess.run(probe_cmd, capture_output=True, text=True, check=True)
    return float(result.stdout.strip())


def test_stream_copy_clip(mock_video_file, tmp_path):
    output = tmp_path / "out" / "clip.mp4"
    request = ClipRequest(
        source_video=MediaFile(mock_video_file),
        output_video=MediaFile(output, validate_exists=False),
        time_range=TimeRange(2.0, 5.0),
    )

    FFmpegClipAdapter(FFMPEG).create_clip(request)

    assert output.exists()
    # Stream copy cuts on keyframes; allow one GOP of slack
    assert 2.0 <= probe_duration(output) <= 4.1


def test_ffmpeg_failure_raises_runtime_error(tmp_path):
    broken = tmp_path / "broken.mp4"
    broken.write_bytes(b"not a video")
    request = ClipRequest(
        source_video=MediaFile(broken),
        output_video=MediaFile(tmp_path / "never.mp4", validate_exists=False),
        time_range=TimeRange(0.0, 1.0),
    )

    with pytest.raises(RuntimeError, match="Video clipping failed"):
        FFmpegClipAdapter(FFMPEG).create_clip(request)
