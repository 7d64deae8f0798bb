"""
Speech-to-text for recorded interview answers (faster-whisper).
"""
import logging
import os
import tempfile
from typing import Dict, List, Optional

from utils.config import config
from utils.errors import ProviderFailure

logger = logging.getLogger(__name__)

TRANSCRIPTION_PLACEHOLDER = "[Transcription unavailable for this answer]"


class WhisperTranscriber:
    """
    Wraps a lazily loaded Whisper model.

    Loading the model takes seconds and a lot of memory, so it happens on the
    first transcription rather than at startup.
    """

    def __init__(self, model_path: Optional[str] = None):
        self.model_path = model_path or config.whisper.model_path
        self._model = None

    def get_model(self):
        if self._model is None:
            from faster_whisper import WhisperModel
            logger.info(f"Loading Whisper model from {self.model_path} ({config.whisper.device})")
            self._model = WhisperModel(
                self.model_path,
                device=config.whisper.device,
                compute_type=config.whisper.compute_type
            )
        return self._model

    def transcribe(self, audio: bytes, suffix: str = ".webm") -> Dict[str, str]:
        """
        Transcribe one recording.

        Returns:
            ``{"text": ...}``

        Raises:
            ProviderFailure: if decoding or recognition fails
        """
        if not audio:
            raise ProviderFailure("Empty audio recording")

        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            tmp.write(audio)
            audio_path = tmp.name

        try:
            segments, _ = self.get_model().transcribe(audio_path)
            text = " ".join(s.text.strip() for s in segments).strip()
        except Exception as e:
            raise ProviderFailure(f"Transcription failed: {e}") from e
        finally:
            try:
                os.unlink(audio_path)
            except OSError:
                pass

        return {"text": text}

    def transcribe_answers(self, recordings: List[bytes], suffix: str = ".webm") -> Dict[int, str]:
        """
        Transcribe one recording per question.

        A failed recording becomes the placeholder text for that question; it
        never fails the whole batch.
        """
        answers: Dict[int, str] = {}
        for index, audio in enumerate(recordings):
            try:
                text = self.transcribe(audio, suffix=suffix)["text"]
            except ProviderFailure as e:
                logger.warning(f"Answer {index}: {e}")
                text = ""
            answers[index] = text or TRANSCRIPTION_PLACEHOLDER
        return answers


# Global transcriber instance
transcriber = WhisperTranscriber()
