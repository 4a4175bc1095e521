"""Ultrasound anomaly detection using OpenAI's Responses API."""

import logging

from openai import AsyncOpenAI

from models.flow_models import DetectAnomaliesInput, DetectAnomaliesOutput
from services.openai.media_inputs import build_inputs, is_image_data_uri
from services.openai.prompts import detection_system_prompt, detection_user_prompt
from services.openai.schemas import DETECTION_FUNCTION, DETECTION_FUNCTION_NAME
from services.openai.tool_call import ToolCallService

LOGGER = logging.getLogger(__name__)


class AnomalyDetector:
    """Detect potential abnormalities and obtain an annotated image."""

    def __init__(self, client: AsyncOpenAI, model: str | None = None) -> None:
        self.service = ToolCallService(client, model)
        self.system_prompt = detection_system_prompt()

    async def detect(self, payload: DetectAnomaliesInput) -> DetectAnomaliesOutput:
        """Return the anomaly list and annotated image for `payload.photoDataUri`.

        A model reply without anomalies yields an empty list. When the annotated
        image is not an image data URI the original image stands in for it.
        """
        inputs = build_inputs(
            self.system_prompt,
            detection_user_prompt(),
            image_urls=[payload.photoDataUri],
        )
        args = await self.service.call_tool(
            inputs, tool=DETECTION_FUNCTION, tool_name=DETECTION_FUNCTION_NAME
        )

        anomalies = args.get("anomalies") or []
        if not isinstance(anomalies, list):
            raise ValueError("Model returned anomalies in an unexpected format.")

        annotated = args.get("annotatedImage")
        if not is_image_data_uri(annotated):
            LOGGER.warning("Annotated image missing or not a data URI; using the original image.")
            annotated = payload.photoDataUri

        return DetectAnomaliesOutput(
            anomalies=[str(item).strip() for item in anomalies if str(item).strip()],
            annotatedImage=annotated,
        )
