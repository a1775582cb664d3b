"""
Audio module - Microphone capture and upload intake.
"""

from .capture import AudioCapture, CaptureHandle, accept_upload, pcm_to_wav

__all__ = ["AudioCapture", "CaptureHandle", "accept_upload", "pcm_to_wav"]
