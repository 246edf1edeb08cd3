"""Unit tests for AudioRecorder."""

import os
import threading

import pytest

from tenor.audio.recorder import AudioRecorder, QUIT_COMMAND
from tenor.config import RecordingSettings


@pytest.mark.unit
class TestAudioRecorder:
    """Test cases for AudioRecorder."""

    def test_initialization_defaults(self):
        recorder = AudioRecorder()

        assert recorder.binary == "ffmpeg"
        assert recorder.sample_rate == 44100
        assert recorder.channels == 1
        assert recorder.is_recording is False
        assert recorder.output_path is None
        assert recorder.last_report is None

    def test_from_settings(self, fake_runner, console, temp_data_dir):
        settings = RecordingSettings(
            input_format="pulse",
            input_device="default",
            temp_dir=temp_data_dir,
            audio_format="flac",
        )

        recorder = AudioRecorder.from_settings(settings, runner=fake_runner, console=console)

        assert recorder.input_format == "pulse"
        assert recorder.input_device == "default"
        assert recorder.file_manager.temp_dir == temp_data_dir
        assert recorder.file_manager.audio_format == "flac"
        assert recorder.runner is fake_runner

    def test_check_available(self, recorder):
        assert recorder.check_available() is True

    def test_check_available_missing_binary(self, recorder, fake_runner, console):
        fake_runner.available.discard("ffmpeg")

        assert recorder.check_available() is False
        output = console.file.getvalue()
        assert "'ffmpeg' not found" in output
        assert "brew install ffmpeg" in output

    def test_build_command(self, recorder):
        cmd = recorder.build_command("/tmp/out.wav")

        assert cmd == [
            "ffmpeg",
            "-f", "avfoundation",
            "-i", ":0",
            "-ar", "44100",
            "-ac", "1",
            "-y",
            "/tmp/out.wav",
        ]

    def test_stop_recording_not_recording(self, recorder, fake_runner):
        """Stopping before anything started touches no process."""
        assert recorder.stop_recording() is None
        assert fake_runner.spawned == []
        assert recorder.is_recording is False

    def test_record_until_stop_requested(self, recorder, fake_runner, make_recording, temp_data_dir):
        fake_runner.on_spawn = make_recording(2048)
        stop_event = threading.Event()
        stop_event.set()

        recorder.record(stop_event)

        # Still running until stop_recording asks it to quit
        assert recorder.is_recording is True
        assert len(fake_runner.spawned) == 1
        output_path = recorder.output_path
        assert os.path.dirname(output_path) == temp_data_dir
        assert os.path.basename(output_path).startswith("audio_recording_")
        assert output_path.endswith(".wav")
        assert fake_runner.spawned[0].args[-1] == output_path

    def test_stop_recording_reports_file_size(self, recorder, fake_runner, make_recording):
        fake_runner.on_spawn = make_recording(4096)
        stop_event = threading.Event()
        stop_event.set()
        recorder.record(stop_event)
        process = fake_runner.spawned[0]

        report = recorder.stop_recording()

        assert report is not None
        assert report.success is True
        assert report.file_size_bytes == 4096
        assert report.duration_seconds >= 0
        assert report.output_path == recorder.output_path
        assert recorder.last_report is report
        assert recorder.is_recording is False
        # Graceful quit through the control channel, not a kill
        assert process.stdin.data == QUIT_COMMAND
        assert process.stdin.closed is True
        assert process.terminated is False
        assert recorder.session.process is None

    def test_stop_recording_twice(self, recorder, fake_runner, make_recording):
        fake_runner.on_spawn = make_recording(16)
        stop_event = threading.Event()
        stop_event.set()
        recorder.record(stop_event)

        assert recorder.stop_recording() is not None
        assert recorder.stop_recording() is None

    def test_record_blocks_until_stop_event(self, recorder, fake_runner, make_recording):
        fake_runner.on_spawn = make_recording(128)
        stop_event = threading.Event()
        timer = threading.Timer(0.1, stop_event.set)
        timer.start()
        try:
            recorder.record(stop_event)
        finally:
            timer.cancel()

        assert stop_event.is_set()
        assert recorder.is_recording is True
        assert recorder.stop_recording().file_size_bytes == 128

    def test_process_exits_on_its_own(self, recorder, fake_runner, make_recording, console):
        def _spawn(process):
            make_recording(512)(process)
            process.returncode = 1
        fake_runner.on_spawn = _spawn

        recorder.record(threading.Event())

        assert recorder.is_recording is False
        assert recorder.last_report is not None
        assert recorder.last_report.success is True
        assert recorder.last_report.file_size_bytes == 512
        assert recorder.stop_recording() is None
        assert "Recording completed successfully" in console.file.getvalue()

    def test_empty_recording_is_reported_not_raised(self, recorder, fake_runner, console):
        def _spawn(process):
            process.returncode = 0
        fake_runner.on_spawn = _spawn

        recorder.record(threading.Event())

        report = recorder.last_report
        assert report.success is False
        assert report.file_size_bytes == 0
        assert not os.path.exists(report.output_path)
        assert "output file is empty or doesn't exist" in console.file.getvalue()

    def test_spawn_failure_is_reported(self, recorder, fake_runner, console, temp_data_dir):
        def _spawn(process):
            raise FileNotFoundError("ffmpeg")
        fake_runner.on_spawn = _spawn
        stop_event = threading.Event()
        stop_event.set()

        recorder.record(stop_event)

        assert recorder.is_recording is False
        assert recorder.last_report is None
        assert "Recording failed" in console.file.getvalue()
        # The never-populated temp file is cleaned up
        assert os.listdir(temp_data_dir) == []

    def test_wait_failure_terminates_process(self, recorder, fake_runner, temp_data_dir):
        def _spawn(process):
            def _poll():
                raise RuntimeError("lost track of process")
            process.poll = _poll
        fake_runner.on_spawn = _spawn

        recorder.record(threading.Event())

        assert recorder.is_recording is False
        assert fake_runner.spawned[0].terminated is True
        assert os.listdir(temp_data_dir) == []

    def test_stop_escalates_when_quit_is_ignored(self, recorder, fake_runner, make_recording):
        def _spawn(process):
            make_recording(64)(process)
            process.ignores_quit = True
        fake_runner.on_spawn = _spawn
        stop_event = threading.Event()
        stop_event.set()
        recorder.record(stop_event)

        report = recorder.stop_recording()

        assert fake_runner.spawned[0].terminated is True
        assert report.file_size_bytes == 64

    def test_stop_with_broken_control_channel(self, recorder, fake_runner, make_recording):
        def _spawn(process):
            make_recording(32)(process)
            process.stdin.broken = True
        fake_runner.on_spawn = _spawn
        stop_event = threading.Event()
        stop_event.set()
        recorder.record(stop_event)

        report = recorder.stop_recording()

        assert report is not None
        assert report.success is True
        assert fake_runner.spawned[0].stdin.closed is True

    def test_record_while_recording(self, recorder, fake_runner, make_recording):
        fake_runner.on_spawn = make_recording(8)
        stop_event = threading.Event()
        stop_event.set()
        recorder.record(stop_event)
        first_path = recorder.output_path

        recorder.record(stop_event)

        assert len(fake_runner.spawned) == 1
        assert recorder.output_path == first_path
