"""
Full pipeline: recording lands in the watch folder with two pending markers,
gets uploaded, clipped and combined.
"""
import shutil
import subprocess

import pytest

from highlighter.core.common.enums import BatchOutcome, Stage
from highlighter.core.context import build_context
from highlighter.features.compilation.service.api import combine_clips
from highlighter.features.ingest_watcher.service.api import build_watcher
from highlighter.features.markers.data.marker_file import MarkerFile
from highlighter.features.storage.domain.models import StorageLocator
from highlighter.features.video_clipping.service.api import extract_clips

FFMPEG = shutil.which("ffmpeg")
FFPROBE = shutil.which("ffprobe")


def record_session(settings, path_writer):
    marker_file = MarkerFile(settings.MARKER_FILE)
    marker_file.append(10.0)
    marker_file.append(50.0)
    return path_writer(settings.WATCH_FOLDER / "stream_2024.mkv")


def test_pipeline_with_fake_media_tools(ctx, clip_generator, concatenator):
    def write_fake(path):
        path.write_bytes(b"\0" * 8192)
        return path

    recording = record_session(ctx.settings, write_fake)

    # Stage 0: watcher
    record = build_watcher(ctx).process_file(recording)
    assert record.markers == (10.0, 50.0)

    # Stage 1: clips
    extraction = extract_clips(ctx, clip_generator=clip_generator)
    assert extraction.outcome == BatchOutcome.SUCCESS

    extracted = ctx.videos.repo.get(record.video_id)
    assert extracted.clips_count == 2
    assert [c.duration for c in extracted.clips] == [30.0, 30.0]
    for clip in extracted.clips:
        assert StorageLocator.parse(clip.gcs_path).path.startswith(f"clips/{record.video_id}/")

    # Stage 2: combined
    compilation = combine_clips(ctx, concatenator=concatenator)
    assert compilation.outcome == BatchOutcome.SUCCESS
    assert StorageLocator.parse(compilation.artifact).path == f"finals/{record.video_id}/stream_2024_highlights.mp4"

    final = ctx.videos.repo.get(record.video_id)
    assert final.stage == Stage.COMPILATION
    assert [item.path.name for item in concatenator.requests[0].inputs] == [c.file_name for c in final.clips]

    document = final.to_document()
    assert document["clipsExtracted"] and document["clipsCombined"]
    assert document["combinedVideo"] == compilation.artifact

    # Nothing left to do
    assert extract_clips(ctx, clip_generator=clip_generator) is None
    assert combine_clips(ctx, concatenator=concatenator) is None


@pytest.mark.skipif(not (FFMPEG and FFPROBE), reason="ffmpeg/ffprobe not installed")
def test_pipeline_with_real_ffmpeg(settings):
    def write_video(path):
        cmd = [
            FFMPEG, "-y",
            "-f", "lavfi", "-i", "testsrc=duration=70:size=160x120:rate=15",
            "-c:v", "libx264", "-preset", "ultrafast", "-g", "15",
            str(path)
        ]
        subprocess.run(cmd, check=True, capture_output=True)
        return path

    recording = record_session(settings, write_video)

    with build_context(settings, require_ffmpeg=True) as ctx:
        record = build_watcher(ctx).process_file(recording)
        assert record is not None

        assert extract_clips(ctx).outcome == BatchOutcome.SUCCESS
        result = combine_clips(ctx)
        assert result.outcome == BatchOutcome.SUCCESS

        final_file = ctx.store.object_file(StorageLocator.parse(result.artifact))
        probe = subprocess.run(
            [FFPROBE, "-v", "error", "-show_entries", "format=duration",
             "-of", "default=noprint_wrappers=1:nokey=1", str(final_file)],
            capture_output=True, text=True, check=True,
        )
        # Two 30s clips, give or take a keyframe at each cut
        assert 55.0 <= float(probe.stdout.strip()) <= 65.0
