"""OpenAI Responses API client for photo estimation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from macrocam.services.estimation import VisionClient


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, timeout: float | None = None) -> "OpenAIVisionClient":
        """Create an OpenAI vision client."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout))

    async def complete(self, *, model: str, image_data_url: str, prompt: str) -> str:
        """Send the prompt and image, returning the trimmed output text."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": image_data_url},
                    ],
                }
            ],
        )
        return (response.output_text or "").strip()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
