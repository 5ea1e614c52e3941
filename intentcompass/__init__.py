"""IntentCompass: compile visual DeFi flows into cross-chain runs."""

__version__ = "0.1.0"
