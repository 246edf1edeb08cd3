"""Unit tests for data models."""

from datetime import datetime, timedelta
from typing import Optional, get_type_hints

import pytest

from tenor.models.session import RecordingSession
from tenor.process.runner import ProcessHandle


@pytest.mark.unit
class TestRecordingSession:
    """Test cases for RecordingSession."""

    def test_process_is_a_process_handle(self):
        hints = get_type_hints(RecordingSession, localns={"ProcessHandle": ProcessHandle})

        assert hints["process"] == Optional[ProcessHandle]

    def test_elapsed_seconds(self):
        session = RecordingSession(output_path="/tmp/a.wav", start_time=datetime.now() - timedelta(seconds=5))

        assert session.elapsed_seconds >= 5
        assert session.active is True
        assert session.process is None
