import subprocess

import pytest

from safestep import audio as audio_module
from safestep.audio import Audio


@pytest.fixture(autouse=True)
def reset_callback():
    yield
    Audio.set_callback(None)


@pytest.fixture
def espeak_calls(monkeypatch):
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr(audio_module.subprocess, "run", run)
    return calls


def test_speak_uses_espeak(espeak_calls):
    Audio().speak("Turn left onto W 22nd St")
    assert espeak_calls == [["espeak", "-s", "150", "Turn left onto W 22nd St"]]


def test_disabled_audio_is_silent(espeak_calls):
    audio = Audio(enabled=False)
    audio.speak("Turn left")
    assert audio.speak_async("Turn left") is None
    assert espeak_calls == []


def test_empty_text_is_not_spoken(espeak_calls):
    Audio().speak("")
    assert espeak_calls == []


def test_callback_receives_text(espeak_calls):
    heard = []
    Audio.set_callback(heard.append)
    Audio().speak("Continue straight")
    assert heard == ["Continue straight"]


def test_speak_async_runs_on_daemon_thread(espeak_calls):
    thread = Audio().speak_async("Turn right")
    thread.join(timeout=5)
    assert thread.daemon
    assert espeak_calls == [["espeak", "-s", "150", "Turn right"]]


def test_falls_back_to_pyttsx3(monkeypatch):
    said = []

    class Engine:
        def say(self, text):
            said.append(text)

        def runAndWait(self):
            pass

    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(audio_module.subprocess, "run", missing)
    monkeypatch.setattr(audio_module.pyttsx3, "init", lambda: Engine())
    Audio().speak("Arrive at destination")
    assert said == ["Arrive at destination"]


def test_prints_when_no_engine_available(monkeypatch, capsys):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    def no_driver():
        raise RuntimeError("no speech driver")

    monkeypatch.setattr(audio_module.subprocess, "run", missing)
    monkeypatch.setattr(audio_module.pyttsx3, "init", no_driver)
    Audio().speak("Turn left")
    assert "[AUDIO] Turn left" in capsys.readouterr().out


def test_other_espeak_errors_fall_back_to_print(monkeypatch, capsys):
    def denied(cmd, **kwargs):
        raise PermissionError(13, "Permission denied", cmd[0])

    monkeypatch.setattr(audio_module.subprocess, "run", denied)
    Audio().speak("Turn right")
    out = capsys.readouterr().out
    assert "Audio error:" in out
    assert "[AUDIO] Turn right" in out
