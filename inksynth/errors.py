"""Error taxonomy shared by the validator, the generation client and the HTTP layer."""


class InkSynthError(Exception):
    """Base class for every error raised by InkSynth."""


class ConfigurationError(InkSynthError):
    """Startup configuration is missing or invalid."""


class InputValidationError(InkSynthError):
    """A request field failed validation. Raised before any model call."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class UnknownRequestType(InkSynthError):
    def __init__(self, request_type):
        super().__init__("Invalid generation type specified.")
        self.request_type = request_type
        self.message = "Invalid generation type specified."


class CodecError(InkSynthError):
    """Image bytes could not be decoded or re-encoded."""


# ---------------------------------------------------------------------------
# Generation errors: one stable shape for the HTTP layer to map
# ---------------------------------------------------------------------------

class GenerationError(InkSynthError):
    public_message = "Failed to generate image. Please try again later."

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ModelRefused(GenerationError):
    """The model answered in prose instead of returning an image."""

    public_message = "The model declined to generate an image. Try a different photo or prompt."
    EXCERPT_LIMIT = 300

    def __init__(self, text: str):
        self.text = text
        excerpt = text if len(text) <= self.EXCERPT_LIMIT else text[: self.EXCERPT_LIMIT] + "..."
        super().__init__(f"Model returned a text response instead of an image: {excerpt}")


class NoOutputProduced(GenerationError):
    public_message = "No image was generated. The model might have refused the request."

    def __init__(self):
        super().__init__(self.public_message)


class GenerationFailed(GenerationError):
    """Generation could not be carried out (bad prompt plan or failed model call)."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to generate: {detail}")


class TransportError(GenerationFailed):
    """The model service could not be reached or rejected the call."""
