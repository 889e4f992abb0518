"""Product data validator: lifecycle record checks and outbound URL checks."""

__version__ = "1.0.0"
