"""InkSynth: tattoo placement previews and tattoo designs generated with Gemini."""

__version__ = "0.3.0"
