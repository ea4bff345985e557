import json
import httpx
from loguru import logger
from ..core.errors import LLMError


class LLMClient:
    """Minimal Azure OpenAI chat-completions client that expects JSON back."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        deployment: str,
        api_version: str = "2024-06-01",
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.deployment = deployment
        self.api_version = api_version
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/openai/deployments/{self.deployment}/chat/completions"

    async def complete_json(self, system_prompt: str, user_content: str) -> dict:
        body = {
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": 0,
            "response_format": {"type": "json_object"},
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(
                    self.url,
                    params={"api-version": self.api_version},
                    headers={"api-key": self.api_key},
                    json=body,
                )
                r.raise_for_status()
            content = r.json()["choices"][0]["message"]["content"]
            data = json.loads(content)
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e.__class__.__name__}: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LLMError(f"LLM returned an unexpected response: {e}") from e

        if not isinstance(data, dict):
            raise LLMError("LLM response is not a JSON object")
        logger.debug("LLM response received", deployment=self.deployment, keys=sorted(data.keys()))
        return data
