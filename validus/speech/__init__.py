"""Speech collaborators driven by the dialogue controller."""

from validus.speech.console import ConsoleRecognizer, ConsoleSynthesizer
from validus.speech.recognizer import Recognizer
from validus.speech.synthesizer import Synthesizer

__all__ = ["ConsoleRecognizer", "ConsoleSynthesizer", "Recognizer", "Synthesizer"]
