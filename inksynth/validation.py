"""Input policy checks. Everything here runs before the model is called."""

from .codec import EncodedImage
from .errors import CodecError, InputValidationError
from .models import DesignerRequest, GenerationRequest, MultiTattooRequest, SimulatorRequest

MAX_IMAGE_BYTES = 10 * 1024 * 1024
ALLOWED_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
MAX_PROMPT_LENGTH = 500
FORBIDDEN_PROMPT_CHARS = "<>"
MAX_DESIGNER_IMAGES = 3


def validate_image(image: EncodedImage, field: str) -> None:
    if not image.data:
        raise InputValidationError(field, f"{field} is empty.")
    if image.decoded_size > MAX_IMAGE_BYTES:
        raise InputValidationError(
            field, f"{field} is too large. Maximum size is {MAX_IMAGE_BYTES // (1024 * 1024)} MB."
        )
    if image.mime_type not in ALLOWED_MIME_TYPES:
        raise InputValidationError(
            field, f"{field} has unsupported type '{image.mime_type}'. Use JPEG, PNG or WebP."
        )
    if image.declared_scheme is not None:
        declared = image.declared_scheme[len("data:"):].split(";", 1)[0]
        if not declared.startswith("image/") or declared != image.mime_type:
            raise InputValidationError(field, f"{field} data does not declare a matching image type.")
    try:
        image.to_bytes()
    except CodecError:
        raise InputValidationError(field, f"{field} is not valid base64 data.")


def validate_prompt(prompt: str) -> None:
    if not prompt or not prompt.strip():
        raise InputValidationError("prompt", "Prompt cannot be empty.")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise InputValidationError(
            "prompt", f"Prompt is too long. Maximum length is {MAX_PROMPT_LENGTH} characters."
        )
    if any(ch in prompt for ch in FORBIDDEN_PROMPT_CHARS):
        raise InputValidationError("prompt", "Prompt contains invalid characters (< or >).")


def validate_target_area(value: str, field: str) -> None:
    if not value.strip():
        raise InputValidationError(field, f"{field} cannot be empty.")


def validate_request(request: GenerationRequest) -> None:
    """Raise InputValidationError for the first field that breaks policy."""
    if isinstance(request, SimulatorRequest):
        validate_image(request.body_part_image, "bodyPartImage")
        validate_image(request.tattoo_design_image, "tattooDesignImage")
        validate_target_area(request.target_area, "targetArea")

    elif isinstance(request, DesignerRequest):
        if not 1 <= len(request.images) <= MAX_DESIGNER_IMAGES:
            raise InputValidationError(
                "images", f"Provide between 1 and {MAX_DESIGNER_IMAGES} reference images."
            )
        for i, image in enumerate(request.images):
            validate_image(image, f"images[{i}]")
        validate_prompt(request.prompt)

    elif isinstance(request, MultiTattooRequest):
        validate_image(request.body_part_image, "bodyPartImage")
        validate_image(request.tattoo1, "tattoo1")
        validate_image(request.tattoo2, "tattoo2")
        validate_target_area(request.target_area1, "targetArea1")
        validate_target_area(request.target_area2, "targetArea2")
        if request.target_area1 == request.target_area2:
            raise InputValidationError(
                "targetArea2", "The two tattoos must be placed on different target areas."
            )

    else:
        raise TypeError(f"Unsupported request type: {type(request).__name__}")
