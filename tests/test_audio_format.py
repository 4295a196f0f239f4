"""Tests for app.utils.audio_format module."""

import pytest

from app.utils.audio_format import (
    MIN_SNIFF_BYTES,
    AudioBuffer,
    AudioFormat,
    detect_audio_format,
)


class TestShortInput:
    """Buffers too short to hold a signature."""

    @pytest.mark.parametrize("length", range(0, MIN_SNIFF_BYTES))
    def test_short_buffers_are_unknown(self, length):
        """Anything under 12 bytes is unknown, even with a valid prefix."""
        data = (b"\x1a\x45\xdf\xa3" + b"RIFF" + b"\x00" * 12)[:length]
        assert detect_audio_format(data) == AudioFormat.UNKNOWN

    def test_exactly_twelve_bytes_is_sniffed(self):
        """12 bytes is enough for a WAV header."""
        assert detect_audio_format(b"RIFF\x00\x00\x00\x00WAVE") == AudioFormat.WAV


class TestWebm:
    """Tests for WebM (EBML) detection."""

    @pytest.mark.parametrize(
        "tail",
        [b"\x00" * 8, b"RIFF\x00\x00\x00\x00WAVE", b"ID3" + b"\xff" * 20],
    )
    def test_webm_magic_wins_regardless_of_content(self, tail):
        """The EBML magic number decides, whatever follows."""
        assert detect_audio_format(b"\x1a\x45\xdf\xa3" + tail) == AudioFormat.WEBM

    def test_partial_magic_is_not_webm(self):
        data = b"\x1a\x45\xdf\x00" + b"\x00" * 12
        assert detect_audio_format(data) == AudioFormat.UNKNOWN


class TestMp3:
    """Tests for MP3 detection."""

    def test_id3_tag(self):
        assert detect_audio_format(b"ID3\x04\x00" + b"\x00" * 20) == AudioFormat.MP3

    @pytest.mark.parametrize("second", [0xFB, 0xFF])
    def test_mpeg_frame_sync(self, second):
        """0xFF followed by a sync byte is an MPEG audio frame."""
        data = bytes([0xFF, second]) + b"\x90\x00" + b"\x00" * 12
        assert detect_audio_format(data) == AudioFormat.MP3

    def test_ff_without_sync_bits_is_unknown(self):
        data = bytes([0xFF, 0x00]) + b"\x00" * 14
        assert detect_audio_format(data) == AudioFormat.UNKNOWN

    @pytest.mark.parametrize("second", [0xF3, 0xFA, 0xE3])
    def test_frames_outside_mask_are_unknown(self, second):
        """Only MPEG-1 frames without CRC match; FF F3 (MPEG-2 Layer III) does not."""
        data = bytes([0xFF, second]) + b"\x90\x00" + b"\x00" * 12
        assert detect_audio_format(data) == AudioFormat.UNKNOWN


class TestWav:
    """Tests for RIFF/WAVE detection."""

    def test_riff_wave(self, wav_bytes):
        assert detect_audio_format(wav_bytes) == AudioFormat.WAV

    def test_riff_with_other_form_type(self):
        """RIFF containers that are not WAVE (e.g. AVI) are unknown."""
        data = b"RIFF\x24\x00\x00\x00AVI LIST" + b"\x00" * 8
        assert detect_audio_format(data) == AudioFormat.UNKNOWN

    def test_wave_without_riff(self):
        data = b"RIFX\x24\x00\x00\x00WAVEfmt " + b"\x00" * 8
        assert detect_audio_format(data) == AudioFormat.UNKNOWN


class TestUnknown:
    def test_plain_text(self):
        assert detect_audio_format(b"this is definitely not audio") == AudioFormat.UNKNOWN

    def test_deterministic(self, webm_bytes):
        """Same input should always produce same output."""
        assert detect_audio_format(webm_bytes) == detect_audio_format(webm_bytes)


class TestAudioBuffer:
    def test_sniff_tags_buffer(self, webm_bytes):
        buffer = AudioBuffer.sniff(webm_bytes)
        assert buffer.format == AudioFormat.WEBM
        assert buffer.data == webm_bytes

    def test_is_immutable(self, webm_bytes):
        buffer = AudioBuffer.sniff(webm_bytes)
        with pytest.raises(AttributeError):
            buffer.format = AudioFormat.WAV

    def test_format_value_is_extension(self):
        assert AudioFormat.UNKNOWN.value == "unknown"
        assert str(AudioFormat.WEBM) == "webm"
