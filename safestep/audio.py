"""Audio/Text-to-speech module for SafeStep."""

import subprocess
import threading
from typing import Optional, Callable

import pyttsx3

from .config import CONFIG


class Audio:
    """Text-to-speech sink for instructions.

    speak() blocks until the utterance is done; speak_async() hands it to a
    background thread so sensor callbacks never wait on speech.
    """

    callback: Optional[Callable[[str], None]] = None  # Class-level callback, e.g. for a display

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._lock = threading.Lock()  # one utterance at a time

    @classmethod
    def set_callback(cls, callback: Optional[Callable[[str], None]]):
        """Set callback function for audio events"""
        cls.callback = callback

    def speak(self, text: str):
        """Speak text using espeak, falling back to pyttsx3"""
        if not self.enabled or not text:
            return
        if Audio.callback:
            Audio.callback(text)

        with self._lock:
            try:
                subprocess.run(
                    ["espeak", "-s", str(CONFIG["espeak_rate"]), text],
                    capture_output=True,
                    timeout=10
                )
            except FileNotFoundError:
                try:
                    engine = pyttsx3.init()
                    engine.say(text)
                    engine.runAndWait()
                except Exception:
                    print(f"[AUDIO] {text}")
            except Exception as e:
                print(f"Audio error: {e}")
                print(f"[AUDIO] {text}")

    def speak_async(self, text: str) -> Optional[threading.Thread]:
        """Speak on a daemon thread without waiting for it"""
        if not self.enabled or not text:
            return None
        thread = threading.Thread(target=self.speak, args=(text,), daemon=True)
        thread.start()
        return thread
