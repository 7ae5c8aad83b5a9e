"""Vision (image analysis) facade."""

from __future__ import annotations

import logging

from grok_client.client.chat import CHAT_PATH
from grok_client.core.request_builder import build_image_analysis_request
from grok_client.core.response_parser import ResponseKind, parse
from grok_client.core.transport import Transport
from grok_client.domain.params import Params
from grok_client.domain.results import ImageAnalysis
from grok_client.domain.value_objects import Model

logger = logging.getLogger(__name__)


class Images:
    """Image analysis through the chat endpoint with a vision model.

    When the selected model cannot handle images, requests fall back to
    ``Model.default_vision()``.
    """

    __slots__ = ("transport", "model")

    def __init__(self, transport: Transport, model: Model | str = Model.GROK_2_VISION_1212) -> None:
        self.transport = transport
        self.model = Model.from_string(model)

    @property
    def vision_model(self) -> Model:
        return self.model if self.model.supports_vision else Model.default_vision()

    def analyze(self, image_url: str, prompt: str | None = None, params: Params | None = None) -> ImageAnalysis:
        """Describe the image at ``image_url``.

        Args:
            image_url: Public URL of a jpg, jpeg, png, gif or webp image.
            prompt: Instruction for the model (default: "Analyze this image.").
            params: Optional generation parameters.

        Raises:
            ValidationError: If the URL is missing, malformed or not a
                supported image format.
        """
        model = self.vision_model
        if model is not self.model:
            logger.debug("Model %s has no vision support, using %s", self.model.value, model.value)
        payload = build_image_analysis_request(image_url, prompt, params, model)
        response = self.transport.post(CHAT_PATH, payload, operation="image_analysis", model=model.value)
        return parse(response, ResponseKind.IMAGE)


__all__ = ["Images"]
