"""Server side of the browser speech features.

Recognition and synthesis both run in the browser (Web Speech API). The
server only hands back the text with a BCP-47 voice code, and keeps uploaded
recordings for a short while so a submission can reference them.
"""
import os
import threading
import uuid
from typing import Dict, Any, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from complaint_modules.eventlog import append_log, event_log
from complaint_modules.languages import get_language

BROWSER_RECOGNITION_HINT = (
    "Please use the browser's built-in speech recognition for better accuracy. "
    "Click the microphone button and speak your complaint."
)
SERVER_RECOGNITION_NOTE = (
    "Speech recognition runs in the browser. The uploaded recording is kept "
    "only briefly and is not transcribed on the server."
)


def speech_language_code(language: str) -> str:
    return get_language(language)["speech_code"]


def tts_payload(text: str, language: str) -> Dict[str, Any]:
    """Response body for the browser's speechSynthesis call."""
    return {
        "success": True,
        "text": text,
        "language": speech_language_code(language),
        "message": "Text ready for speech synthesis",
    }


def _extension(upload: FileStorage) -> str:
    name = secure_filename(upload.filename or "")
    ext = os.path.splitext(name)[1].lower()
    return ext if ext else ".webm"


def _remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        append_log(f"audio_cleanup_error path={path} error={e}")


def save_transient_audio(upload: FileStorage, directory: str, retention_seconds: float,
                         schedule_cleanup: bool = True) -> str:
    """Store an uploaded recording under a random name and return its path.

    The file is deleted after ``retention_seconds`` by a daemon timer.
    """
    os.makedirs(directory, exist_ok=True)
    filename = f"{uuid.uuid4()}{_extension(upload)}"
    path = os.path.join(directory, filename)
    upload.save(path)
    event_log("audio_saved", filename=filename)
    if schedule_cleanup and retention_seconds > 0:
        timer = threading.Timer(retention_seconds, _remove_quietly, args=(path,))
        timer.daemon = True
        timer.start()
    return path


def stt_payload(audio_path: Optional[str], language: str) -> Dict[str, Any]:
    return {
        "success": True,
        "text": BROWSER_RECOGNITION_HINT,
        "language": language,
        "audio_path": audio_path,
        "note": SERVER_RECOGNITION_NOTE,
    }
