"""Handles Speech-to-Text transcription using Hugging Face ASR pipelines."""

import functools
import logging
import os
import torch
from abc import ABC, abstractmethod
from transformers import pipeline
from typing import Any, List, Optional

from .models import TranscriptionOptions, TranscriptionResult, TranscriptSegment
from .exceptions import TranscriptionError
from .utils import derive_path, ensure_dir_exists

logger = logging.getLogger(__name__)

ASR_TASK = "automatic-speech-recognition"

@functools.lru_cache(maxsize=4)
def get_pipeline(model: str, device: str, chunk_length_s: float):
    """Loads (once per model/device) the transformers ASR pipeline."""
    logger.info(f"Loading ASR pipeline '{model}' on device '{device}'")
    return pipeline(ASR_TASK, model=model, device=device, chunk_length_s=chunk_length_s)

def resolve_device(device: str) -> str:
    """
    Validates the requested device, falling back to CPU when CUDA is missing.

    Raises:
        ValueError: If the device is neither 'cuda' nor 'cpu'.
    """
    if device == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA device requested but not available. Falling back to CPU.")
        return "cpu"
    if device not in ["cuda", "cpu"]:
        raise ValueError(f"Invalid device specified: {device}. Choose 'cuda' or 'cpu'.")
    return device

def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)

def normalize_pipeline_output(raw: Any, audio_path: Optional[str] = None) -> TranscriptionResult:
    """
    Converts whatever the pipeline returned into a TranscriptionResult.

    Batched calls return a list of results; only the first one is used.
    Chunks become segments in their original order.

    Raises:
        TranscriptionError: If the pipeline returned an empty list.
    """
    if isinstance(raw, (list, tuple)):
        if not raw:
            raise TranscriptionError(f"ASR pipeline returned no results for {audio_path}")
        raw = raw[0]

    segments = []
    for chunk in _field(raw, "chunks") or []:
        timestamp = _field(chunk, "timestamp") or (None, None)
        segments.append(TranscriptSegment(
            text=_field(chunk, "text") or "",
            start=timestamp[0],
            end=timestamp[1],
        ))

    return TranscriptionResult(
        text=_field(raw, "text") or "",
        segments=segments,
        audio_path=audio_path,
    )


class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, audio_path: str, return_timestamps: bool = False) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the audio file.
            return_timestamps: Whether to request timed chunks from the model.

        Returns:
            A TranscriptionResult with the text and, when requested, segments.
        """
        pass

class HuggingFaceTranscriber(Transcriber):
    """Implements transcription using a transformers ASR pipeline (Whisper by default)."""

    def __init__(self, options: Optional[TranscriptionOptions] = None):
        """
        Initializes the transcriber and loads the pipeline.

        Args:
            options: Model, language, task and device settings. Defaults apply when None.

        Raises:
            ValueError: If the specified device is invalid.
            Exception: Whatever transformers raises when the model fails to load.
        """
        self.options = options or TranscriptionOptions()
        self.device = resolve_device(self.options.device)

        logger.info(
            f"Initializing HuggingFaceTranscriber with model '{self.options.model}' on device '{self.device}' "
            f"(language: {self.options.language}, task: {self.options.task})"
        )
        try:
            self.pipe = get_pipeline(self.options.model, self.device, self.options.chunk_length_s)
        except Exception as e:
            logger.error(f"Failed to load ASR model '{self.options.model}': {e}", exc_info=True)
            raise

    def transcribe(self, audio_path: str, return_timestamps: bool = False) -> TranscriptionResult:
        logger.info(f"Processing audio file{' (with timestamps)' if return_timestamps else ''}: {audio_path}")
        raw = self.pipe(
            audio_path,
            generate_kwargs={"language": self.options.language, "task": self.options.task},
            return_timestamps=return_timestamps,
        )
        result = normalize_pipeline_output(raw, audio_path)
        logger.info(f"Transcription completed: {len(result.text)} characters, {len(result.segments)} segments.")
        return result


def transcribe_audio(audio_path: str, options: Optional[TranscriptionOptions] = None) -> str:
    """
    Transcribes an audio file to plain text.

    Returns:
        The transcript, or an empty string when the model produced no text.
    """
    try:
        return HuggingFaceTranscriber(options).transcribe(audio_path).text
    except Exception as e:
        logger.error(f"Audio transcription failed for {audio_path}: {e}", exc_info=True)
        raise

def transcribe_audio_with_timestamps(
    audio_path: str,
    options: Optional[TranscriptionOptions] = None
) -> List[TranscriptSegment]:
    """Transcribes an audio file into timed segments (empty list if the model gave no chunks)."""
    try:
        return HuggingFaceTranscriber(options).transcribe(audio_path, return_timestamps=True).segments
    except Exception as e:
        logger.error(f"Audio transcription (with timestamps) failed for {audio_path}: {e}", exc_info=True)
        raise

def transcribe_audio_to_file(
    audio_path: str,
    output_path: Optional[str] = None,
    options: Optional[TranscriptionOptions] = None
) -> str:
    """
    Transcribes an audio file and writes the text as UTF-8.

    Args:
        audio_path: Path to the audio file.
        output_path: Destination; defaults to the audio path with a .txt extension.
        options: Transcription settings.

    Returns:
        The path the transcript was written to.
    """
    try:
        text = transcribe_audio(audio_path, options)

        final_output_path = output_path or derive_path(audio_path, extension=".txt")
        parent = os.path.dirname(final_output_path)
        if parent:
            ensure_dir_exists(parent)
        with open(final_output_path, "w", encoding="utf-8") as f:
            f.write(text)

        logger.info(f"Transcript saved to {final_output_path}")
        return final_output_path
    except Exception as e:
        logger.error(f"Saving transcript for {audio_path} failed: {e}", exc_info=True)
        raise
