"""Instruction text for each generation mode.

Every builder returns a ``PromptPlan``: the text AND the order in which the
request's images must be interleaved with it. The instructions refer to "the
main image" or "this first tattoo design" by position, so the generation
client follows the plan instead of guessing the order.
"""

from dataclasses import dataclass
from typing import Union

from .models import DesignerRequest, GenerationRequest, MultiTattooRequest, SimulatorRequest


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class ImageSlot:
    name: str


Segment = Union[TextSegment, ImageSlot]


@dataclass(frozen=True)
class PromptPlan:
    segments: tuple[Segment, ...]

    @property
    def text(self) -> str:
        return "\n".join(s.text for s in self.segments if isinstance(s, TextSegment))

    @property
    def slots(self) -> list:
        return [s.name for s in self.segments if isinstance(s, ImageSlot)]


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

SIMULATOR_PROMPT = """Your task is to place the provided tattoo design onto the subject's {target_area} in the main image.
{sleeve_definition}
**MANDATORY RULES:**
1. PLACEMENT ACCURACY: The tattoo MUST be placed *only* on the specified "{target_area}".
2. REALISM: The tattoo must blend seamlessly, conforming to body contours, muscle definition, lighting, and shadows.
3. IMAGE INTEGRITY: The output image MUST have the exact same dimensions and aspect ratio as the original body part image.
4. OUTPUT FORMAT: Your final output MUST be only the edited image itself. No text.
The target area is: **{target_area}**.{orientation_note}"""

FULL_SLEEVE_DEFINITION = (
    '**SPECIAL INSTRUCTION FOR FULL SLEEVE:** A "Full Sleeve" tattoo covers the entire arm, '
    "from the shoulder down to the wrist. The design must be realistically wrapped around "
    "the arm and contained entirely within these boundaries."
)

ORIENTATION_NOTE = (
    "\n**ORIENTATION NOTE:** The main image has been horizontally mirrored to standardize "
    "processing. Interpret 'Left' and 'Right' as the subject's own left and right as they "
    "appear in this mirrored image, not the viewer's, and not the un-mirrored original."
)


def build_simulator_prompt(target_area: str, was_originally_right: bool = False) -> PromptPlan:
    sleeve = FULL_SLEEVE_DEFINITION if "full sleeve" in target_area.lower() else ""
    text = SIMULATOR_PROMPT.format(
        target_area=target_area,
        sleeve_definition=sleeve,
        orientation_note=ORIENTATION_NOTE if was_originally_right else "",
    )
    return PromptPlan(
        segments=(ImageSlot("bodyPartImage"), TextSegment(text), ImageSlot("tattooDesignImage"))
    )


# ---------------------------------------------------------------------------
# Designer
# ---------------------------------------------------------------------------

STANDARD_PLACEMENT_CLAUSE = "The design should be presented in a standard, flat orientation."

PLACEMENT_CLAUSES = {
    "Standard (Flat)": STANDARD_PLACEMENT_CLAUSE,
    "Bicep / Thigh": (
        "The final design should be shaped to fit naturally on a bicep or thigh, "
        "often having a slightly curved or rounded rectangular form."
    ),
    "Forearm / Calf": (
        "The final design should be shaped to fit a forearm or calf, "
        "meaning it should be vertically elongated."
    ),
    "Full Neck": (
        'The final design should be shaped like a "gorget" or neckpiece, '
        "designed to fit the front and sides of the neck."
    ),
    "Full Back": "The final design should be a large, expansive piece shaped to fit the entire back.",
    "Full Arm Sleeve": (
        'The final design should be a "full sleeve" piece, created as a long, continuous '
        "design intended to be wrapped around an entire arm."
    ),
}

DESIGNER_PROMPT = (
    'Combine the following images based on this prompt: "{prompt}". '
    "Generate a single, cohesive, {style}. {placement} "
    "The final image must have a clean, solid white background. "
    "Output only the final design image."
)


def build_designer_prompt(prompt: str, is_color: bool, placement: str, image_count: int) -> PromptPlan:
    style = "vibrant, full-color tattoo design" if is_color else "black and white tattoo design"
    text = DESIGNER_PROMPT.format(
        prompt=prompt,
        style=style,
        placement=PLACEMENT_CLAUSES.get(placement, STANDARD_PLACEMENT_CLAUSE),
    )
    # Text first: the reference images are unordered, the instruction frames all of them.
    slots = tuple(ImageSlot(f"images[{i}]") for i in range(image_count))
    return PromptPlan(segments=(TextSegment(text),) + slots)


# ---------------------------------------------------------------------------
# Multi-tattoo
# ---------------------------------------------------------------------------

MULTI_TATTOO_RULES = """Your task is to place TWO separate tattoo designs onto the subject in the main image with extreme precision.
**MANDATORY RULES FOR BOTH TATTOOS - NON-COMPLIANCE IS A TASK FAILURE:**
1. PERSPECTIVE DEFINITION (CRITICAL): 'Left' and 'Right' ALWAYS refer to the subject's own left and right, NOT the viewer's perspective. This is the most important rule.
2. PLACEMENT ACCURACY (CRITICAL): Each tattoo must be placed *only* on its specified target area.
3. REALISM: Both tattoos must blend seamlessly with the skin.
4. IMAGE INTEGRITY: The output image must have the exact same dimensions as the original.
5. OUTPUT FORMAT: Output only the single, final edited image containing BOTH tattoos. No text."""

MULTI_TATTOO_TASK = "TASK {number}: Place this {ordinal} tattoo design on the subject's **{target_area}**."


def build_multi_tattoo_prompt(target_area1: str, target_area2: str) -> PromptPlan:
    return PromptPlan(
        segments=(
            ImageSlot("bodyPartImage"),
            TextSegment(MULTI_TATTOO_RULES),
            TextSegment(MULTI_TATTOO_TASK.format(number=1, ordinal="first", target_area=target_area1)),
            ImageSlot("tattoo1"),
            TextSegment(MULTI_TATTOO_TASK.format(number=2, ordinal="second", target_area=target_area2)),
            ImageSlot("tattoo2"),
        )
    )


def build_prompt(request: GenerationRequest) -> PromptPlan:
    if isinstance(request, SimulatorRequest):
        return build_simulator_prompt(request.target_area, request.was_originally_right)
    if isinstance(request, DesignerRequest):
        return build_designer_prompt(request.prompt, request.is_color, request.placement, len(request.images))
    if isinstance(request, MultiTattooRequest):
        return build_multi_tattoo_prompt(request.target_area1, request.target_area2)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")
