from openai import OpenAI
from .config import settings

class OpenAIClient:
    def __init__(self, api_key: str | None = None, base_url: str | None = None) -> None:
        self._api_key = api_key or settings.OPENAI_API_KEY
        self._base_url = base_url or settings.OPENAI_BASE_URL
        self._client: OpenAI | None = None

    @property
    def client(self) -> OpenAI:
        # Built on first use so the app can start without credentials
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key or None,
                base_url=self._base_url,
                default_headers={
                    "HTTP-Referer": settings.SITE_URL,
                    "X-Title": settings.APP_TITLE,
                },
            )
        return self._client

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    # Expose chat attribute so openai_client.chat.completions.create() works
    @property
    def chat(self):
        return self.client.chat

openai_client = OpenAIClient()
