import base64
import logging

from google import genai
from google.genai import types

from .config import Settings
from .errors import GenerationFailed, ModelRefused, NoOutputProduced, TransportError
from .prompts import ImageSlot, PromptPlan

logger = logging.getLogger(__name__)


def create_genai_client(settings: Settings) -> genai.Client:
    """Build the process-wide Gemini client. Called once at startup."""
    client = genai.Client(
        api_key=settings.gemini_api_key,
        http_options=types.HttpOptions(timeout=int(settings.timeout_seconds * 1000)),
    )
    logger.info("[INIT] Gemini client initialized (model=%s, timeout=%ss).",
                settings.model, settings.timeout_seconds)
    return client


def extract_image(response) -> str:
    """Return the first inline image of the first candidate as a data URI.

    A text-only answer means the model declined and explained itself, which is
    surfaced as ModelRefused. Later candidates are never consulted.
    """
    candidates = getattr(response, "candidates", None) or []
    content = getattr(candidates[0], "content", None) if candidates else None
    parts = getattr(content, "parts", None) or []

    texts = []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            data = inline.data
            if isinstance(data, bytes):
                data = base64.b64encode(data).decode("ascii")
            mime_type = inline.mime_type or "image/png"
            return f"data:{mime_type};base64,{data}"
        text = getattr(part, "text", None)
        if text:
            texts.append(text)

    text_result = "".join(texts).strip()
    if text_result:
        raise ModelRefused(text_result)
    raise NoOutputProduced()


class GenerationClient:
    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    def build_contents(self, plan: PromptPlan, images_by_slot: dict) -> list:
        """Interleave image and text parts in exactly the order the plan declares."""
        contents = []
        for segment in plan.segments:
            if isinstance(segment, ImageSlot):
                image = images_by_slot[segment.name]
                contents.append(types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type))
            else:
                contents.append(types.Part.from_text(text=segment.text))
        return contents

    def generate(self, request, plan: PromptPlan) -> str:
        try:
            contents = self.build_contents(plan, request.images_by_slot())
        except KeyError as e:
            raise GenerationFailed(f"prompt references missing image slot {e}") from e

        logger.info("[GEN] Calling %s for %s request (%d parts).", self.model, request.kind, len(contents))
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except Exception as e:
            logger.exception("[GEN] Model call failed: %s", e)
            raise TransportError(str(e)) from e

        image = extract_image(response)
        logger.info("[GEN] Received image from %s.", self.model)
        return image
