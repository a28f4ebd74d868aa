import logging

from .gemini import GenerationClient
from .models import GenerationRequest
from .prompts import build_prompt
from .validation import validate_request

logger = logging.getLogger(__name__)


class GenerationService:
    """validate -> build prompt -> generate. Stops at the first failure."""

    def __init__(self, generation_client: GenerationClient):
        self.generation_client = generation_client

    def run(self, request: GenerationRequest) -> str:
        validate_request(request)

        plan = build_prompt(request)
        preview = plan.text[:200] + "..." if len(plan.text) > 200 else plan.text
        logger.debug("[PIPELINE] %s prompt: %s", request.kind, preview)
        logger.info("[PIPELINE] %s request validated, slots=%s", request.kind, plan.slots)

        return self.generation_client.generate(request, plan)
