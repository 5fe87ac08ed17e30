"""
Gemini Water Sample Analyzer

Builds the safety-assessment request for a water sample (photo or manual drone
readings), sends it to Google's Gemini API and validates the structured reply
into an AnalysisResult.
"""

import asyncio
import base64
import binascii
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from google import genai
from google.genai import types
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from models import AnalysisResult, DroneData, InvalidSampleError
from response_schema import RESPONSE_SCHEMA, AnalysisResponse

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """The model call failed or its reply could not be used."""


@dataclass(frozen=True)
class AnalysisRequest:
    """Validated request, ready to send."""
    prompt: str
    image_part: Optional[types.Part] = None
    language: str = "English"


class WaterAnalyzer:
    """Requests water safety assessments from Gemini."""

    DEFAULT_MODEL = "gemini-2.5-flash"

    # Maximum time for a Gemini API call (seconds)
    TIMEOUT_SECONDS = 60

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None,
                 timeout: Optional[float] = None, client=None):
        """
        Initialize Gemini API client.

        Args:
            api_key: Google Generative AI API key
            model_name: Gemini model to use
            timeout: Seconds before a model call is abandoned
            client: Pre-built client exposing models.generate_content
        """
        if client is None:
            if not api_key:
                raise ValueError("Gemini API key is required")
            client = genai.Client(api_key=api_key)

        self.client = client
        self.model_name = model_name or self.DEFAULT_MODEL
        self.timeout = timeout or self.TIMEOUT_SECONDS
        logger.info(f"WaterAnalyzer initialized with model {self.model_name}")

    async def analyze(
        self,
        image: Optional[Union[bytes, str]] = None,
        drone_data: Optional[DroneData] = None,
        language: str = "English",
    ) -> AnalysisResult:
        """
        Assess a water sample.

        Exactly one of image or drone_data must be supplied.

        Args:
            image: Raw image bytes or a data URI (data:image/jpeg;base64,...)
            drone_data: Manually entered sensor readings
            language: Output language for the explanation and recommendations

        Returns:
            AnalysisResult stamped with the time the reply was received

        Raises:
            InvalidSampleError: If the input is malformed
            AnalysisError: If the call fails or the reply violates the schema
        """
        request = self.build_request(image, drone_data, language)
        return await self.send(request)

    def build_request(
        self,
        image: Optional[Union[bytes, str]] = None,
        drone_data: Optional[DroneData] = None,
        language: str = "English",
    ) -> AnalysisRequest:
        """
        Validate the sample and assemble the model request.

        Raises:
            InvalidSampleError: If both or neither inputs are given, or either is malformed
        """
        if (image is None) == (drone_data is None):
            raise InvalidSampleError("Provide either an image or drone data, not both")

        image_part = None
        if image is not None:
            image_part = self._image_part(image)
        else:
            drone_data.validate()

        prompt = self._build_prompt(drone_data, language, has_image=image_part is not None)
        return AnalysisRequest(prompt=prompt, image_part=image_part, language=language)

    async def send(self, request: AnalysisRequest) -> AnalysisResult:
        """Send a built request and validate the reply. No retries."""
        try:
            loop = asyncio.get_event_loop()
            response_text = await asyncio.wait_for(
                loop.run_in_executor(None, self._call_gemini_sync, request.prompt, request.image_part),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Gemini API timeout after {self.timeout}s")
            raise AnalysisError("Gemini API call timed out") from e
        except Exception as e:
            logger.warning(f"Gemini API error: {str(e)}")
            raise AnalysisError(f"Gemini API call failed: {str(e)}") from e

        return self._parse_response(response_text)

    def _build_prompt(self, drone_data: Optional[DroneData], language: str, has_image: bool) -> str:
        """
        Build prompt for the safety assessment.

        Args:
            drone_data: Manual readings, if this is a telemetry submission
            language: Requested output language
            has_image: Whether a sample photo accompanies the prompt

        Returns:
            Formatted prompt string
        """
        image_note = "An image of a test strip or water sample is provided." if has_image else ""
        telemetry_note = (
            f"Initial drone telemetry data: {json.dumps(drone_data.to_dict())}" if drone_data else ""
        )

        prompt = f"""Analyze this water quality sample for a user in a rural or resource-limited setting.
Output language: {language}.

{image_note}
{telemetry_note}

CRITICAL INSTRUCTIONS:
1. Assess safety based on WHO/EPA standards.
2. Provide a 'simpleExplanation' that is non-technical, clear, and easy to understand for someone without a science background.
3. Identify 'alerts' for specific health risks like: fluoride toxicity, bacterial suspicion, heavy metals, or high nitrates (blue baby syndrome).
4. Provide actionable 'recommendations' like 'Boil for 5 mins', 'Use carbon filter', 'Avoid completely', or 'Report to local council'.
5. Determine RiskLevel: SAFE, CAUTION, or UNSAFE."""

        return prompt

    def _image_part(self, image: Union[bytes, str]) -> types.Part:
        """
        Decode an image payload into an inline request part.

        Raises:
            InvalidSampleError: If the payload is not a decodable image
        """
        if isinstance(image, str):
            payload = image.split(",", 1)[1] if image.startswith("data:") and "," in image else image
            try:
                image_bytes = base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InvalidSampleError("Image data is not valid base64") from e
        else:
            image_bytes = image

        if not image_bytes:
            raise InvalidSampleError("Image data is empty")

        try:
            img = Image.open(io.BytesIO(image_bytes))
            mime_type = f"image/{img.format.lower()}" if img.format else "image/jpeg"
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidSampleError(f"Image data could not be decoded: {str(e)}") from e

        logger.debug(f"Including image in Gemini request (MIME: {mime_type})")
        return types.Part.from_bytes(data=image_bytes, mime_type=mime_type)

    def _call_gemini_sync(self, prompt: str, image_part: Optional[types.Part] = None) -> str:
        """
        Synchronous Gemini API call (runs in executor).

        Returns:
            Response text
        """
        contents = [prompt]
        if image_part is not None:
            contents.append(image_part)

        response = self.client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        )
        return response.text

    def _parse_response(self, response_text: Optional[str]) -> AnalysisResult:
        """
        Validate the structured reply and stamp it with the current time.

        Raises:
            AnalysisError: If the reply is empty, not JSON or missing required fields
        """
        if not response_text:
            raise AnalysisError("Gemini returned an empty response")

        try:
            response = AnalysisResponse.model_validate_json(response_text)
        except ValidationError as e:
            logger.warning(f"Gemini response failed validation: {e.error_count()} error(s)")
            raise AnalysisError(f"Gemini response did not match the schema: {str(e)}") from e

        if not response.risk_agrees_with_score():
            logger.warning(
                f"Gemini reported {response.riskLevel.value} with score {response.score}; "
                f"keeping the reply as received"
            )

        timestamp = datetime.now(timezone.utc).isoformat()
        return response.to_result(timestamp)
