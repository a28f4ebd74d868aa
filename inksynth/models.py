"""Request variants accepted by ``POST /api/generate``."""

from dataclasses import dataclass
from typing import ClassVar, Union

from .codec import EncodedImage
from .errors import InputValidationError, UnknownRequestType

PLACEMENT_OPTIONS = [
    "Standard (Flat)", "Bicep / Thigh", "Forearm / Calf",
    "Full Neck", "Full Back", "Full Arm Sleeve",
]
DEFAULT_PLACEMENT = PLACEMENT_OPTIONS[0]


@dataclass(frozen=True)
class SimulatorRequest:
    kind: ClassVar[str] = "simulator"

    body_part_image: EncodedImage
    tattoo_design_image: EncodedImage
    target_area: str
    was_originally_right: bool = False

    def images_by_slot(self) -> dict:
        return {"bodyPartImage": self.body_part_image, "tattooDesignImage": self.tattoo_design_image}


@dataclass(frozen=True)
class DesignerRequest:
    kind: ClassVar[str] = "designer"

    images: tuple
    prompt: str
    is_color: bool = False
    placement: str = DEFAULT_PLACEMENT

    def images_by_slot(self) -> dict:
        return {f"images[{i}]": image for i, image in enumerate(self.images)}


@dataclass(frozen=True)
class MultiTattooRequest:
    kind: ClassVar[str] = "multi-tattoo"

    body_part_image: EncodedImage
    tattoo1: EncodedImage
    target_area1: str
    tattoo2: EncodedImage
    target_area2: str

    def images_by_slot(self) -> dict:
        return {"bodyPartImage": self.body_part_image, "tattoo1": self.tattoo1, "tattoo2": self.tattoo2}


GenerationRequest = Union[SimulatorRequest, DesignerRequest, MultiTattooRequest]


# ---------------------------------------------------------------------------
# JSON payload parsing
# ---------------------------------------------------------------------------

def _string(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise InputValidationError(key, f"{key} is required and must be a string.")
    return value


def _flag(payload: dict, key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise InputValidationError(key, f"{key} must be true or false.")
    return value


def _parse_simulator(payload: dict) -> SimulatorRequest:
    return SimulatorRequest(
        body_part_image=EncodedImage.from_payload(payload.get("bodyPartImage"), "bodyPartImage"),
        tattoo_design_image=EncodedImage.from_payload(payload.get("tattooDesignImage"), "tattooDesignImage"),
        target_area=_string(payload, "targetArea"),
        was_originally_right=_flag(payload, "wasOriginallyRight"),
    )


def _parse_designer(payload: dict) -> DesignerRequest:
    images = payload.get("images")
    if not isinstance(images, list):
        raise InputValidationError("images", "images must be a list of images.")
    placement = payload.get("placement")
    if placement is None:
        placement = DEFAULT_PLACEMENT
    if not isinstance(placement, str):
        raise InputValidationError("placement", "placement must be a string.")
    return DesignerRequest(
        images=tuple(EncodedImage.from_payload(img, f"images[{i}]") for i, img in enumerate(images)),
        prompt=_string(payload, "prompt"),
        is_color=_flag(payload, "isColor"),
        placement=placement,
    )


def _parse_multi_tattoo(payload: dict) -> MultiTattooRequest:
    return MultiTattooRequest(
        body_part_image=EncodedImage.from_payload(payload.get("bodyPartImage"), "bodyPartImage"),
        tattoo1=EncodedImage.from_payload(payload.get("tattoo1"), "tattoo1"),
        target_area1=_string(payload, "targetArea1"),
        tattoo2=EncodedImage.from_payload(payload.get("tattoo2"), "tattoo2"),
        target_area2=_string(payload, "targetArea2"),
    )


_PARSERS = {
    SimulatorRequest.kind: _parse_simulator,
    DesignerRequest.kind: _parse_designer,
    MultiTattooRequest.kind: _parse_multi_tattoo,
}


def parse_request(body) -> GenerationRequest:
    """Turn ``{type, payload}`` into one of the request variants."""
    if not isinstance(body, dict):
        raise InputValidationError("body", "Request body must be a JSON object.")

    request_type = body.get("type")
    parser = _PARSERS.get(request_type) if isinstance(request_type, str) else None
    if parser is None:
        raise UnknownRequestType(request_type)

    payload = body.get("payload")
    if not isinstance(payload, dict):
        raise InputValidationError("payload", "payload must be a JSON object.")
    return parser(payload)
