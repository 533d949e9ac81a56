"""Generation services built on the resolver and the single-attempt invoker.

Each service resolves the model for its capability on every call (cheap while
the cache is fresh), performs exactly one inference request through
``SingleAttemptInvoker`` and returns plain data.  Images use the Vertex AI
REST ``:predict`` endpoint; text goes through LangChain chat models.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from .config import CapabilityClass, ResolverSettings
from .endpoints import publisher_model_url
from .exceptions import InferenceError, ResolverConfigurationError
from .gate import RequestSpacingGate
from .interfaces import AccessTokenProvider, LLMFactory
from .invoker import SingleAttemptInvoker
from .logging import get_logger
from .prompts import StyleChip, TemplateType, build_imagen_prompt
from .resolver import CapabilityResolver

logger = get_logger(__name__)

MAX_IMAGES_PER_REQUEST = 4


class ImageGenerationService:
    def __init__(
        self,
        settings: ResolverSettings,
        resolver: CapabilityResolver,
        invoker: SingleAttemptInvoker,
        token_provider: AccessTokenProvider,
        gate: RequestSpacingGate,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.resolver = resolver
        self.invoker = invoker
        self.token_provider = token_provider
        self.gate = gate
        self._transport = transport

    def _request_body(self, prompt: str, number_of_images: int) -> Dict[str, Any]:
        return {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": number_of_images,
                "aspectRatio": "3:4",
                "safetyFilterLevel": "block_some",
                "personGeneration": "allow_adult",
            },
        }

    async def generate(
        self,
        prompt: str,
        number_of_images: int = 1,
        session_id: Optional[str] = None,
        template: Optional[TemplateType] = None,
        style: Optional[StyleChip] = None,
        brand_color: Optional[str] = None,
    ) -> List[str]:
        """Generate images for *prompt*.

        Args:
            prompt: Image prompt, or the bare subject when a template, style
                or brand colour is given.
            number_of_images: Between 1 and 4.
            session_id: When given, the per-session request spacing applies.
            template: Design template whose text area is kept free.
            style: Style chip applied to the subject.
            brand_color: Hex brand colour mentioned in the prompt when known.

        Returns:
            ``data:image/png;base64,...`` URIs, one per returned image.

        Raises:
            ValueError: On an empty prompt or an out-of-range count.
            GenerationThrottledError: If the session must still wait.
            ResolverConfigurationError: If no project is configured.
            InferenceError: On a non-2xx response or an empty result.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt is required")
        if not 1 <= number_of_images <= MAX_IMAGES_PER_REQUEST:
            raise ValueError(f"number_of_images must be between 1 and {MAX_IMAGES_PER_REQUEST}")
        if not self.settings.project_id:
            raise ResolverConfigurationError("GOOGLE_CLOUD_PROJECT_ID environment variable is required")
        if session_id is not None:
            self.gate.acquire(session_id)

        if template is not None or style is not None or brand_color:
            prompt = build_imagen_prompt(prompt, template or TemplateType.IMAGE_TEXT, brand_color, style)

        model = await self.resolver.resolve(CapabilityClass.IMAGE)
        url = publisher_model_url(self.settings, model, "predict")
        body = self._request_body(prompt, number_of_images)
        logger.info("Generating %d image(s) with %s", number_of_images, model)

        async def call() -> Dict[str, Any]:
            token = await self.token_provider.get_token()
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, headers={"Authorization": f"Bearer {token}"}, json=body)
            if response.status_code >= 400:
                raise InferenceError(response.status_code, response.text, model=model)
            return response.json()

        payload = await self.invoker.invoke(call, name=f"image:{model}")
        return self._extract_images(payload, model)

    def _extract_images(self, payload: Dict[str, Any], model: str) -> List[str]:
        images = []
        predictions = payload.get("predictions") if isinstance(payload, dict) else None
        for index, prediction in enumerate(predictions or []):
            encoded = prediction.get("bytesBase64Encoded") if isinstance(prediction, dict) else None
            if encoded:
                mime = prediction.get("mimeType") or "image/png"
                images.append(f"data:{mime};base64,{encoded}")
            else:
                logger.warning("Prediction %d from %s carries no image bytes", index + 1, model)

        if not images:
            raise InferenceError(200, "No images in prediction response", model=model)
        return images


HEADLINE_PROMPT = (
    'Generate a single, short marketing headline (5 words max) for a design image about "{subject}". '
    "Be creative, punchy, and compelling. "
    "The headline will be displayed as an overlay on the generated image. "
    "Return ONLY the headline text, nothing else. No quotation marks, no explanation."
)


def clean_headline(text: str) -> str:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    first = lines[0].strip() if lines else ""
    return first.strip("\"'").strip()


class HeadlineService:
    def __init__(
        self,
        resolver: CapabilityResolver,
        invoker: SingleAttemptInvoker,
        llm_factory: LLMFactory,
        api_key_present: bool,
    ):
        self.resolver = resolver
        self.invoker = invoker
        self.llm_factory = llm_factory
        self.api_key_present = api_key_present

    async def generate(self, subject: str) -> str:
        if not subject or not subject.strip():
            raise ValueError("Subject is required")
        subject = subject.strip()

        if not self.api_key_present:
            logger.warning("GOOGLE_GENERATIVE_AI_API_KEY not set, skipping headline generation")
            return subject[0].upper() + subject[1:]

        model = await self.resolver.resolve(CapabilityClass.TEXT)
        llm = self.llm_factory.create(model, temperature=0.9, max_tokens=32)
        messages = [{"role": "user", "content": HEADLINE_PROMPT.format(subject=subject)}]

        raw = await self.invoker.invoke(lambda: llm.ainvoke(messages), name=f"headline:{model}")
        headline = clean_headline(raw)
        logger.info("Generated headline: %s", headline)
        return headline or subject


class LayoutId(str, Enum):
    VISUAL_SOLO = "VISUAL_SOLO"
    HOOK_CENTER = "HOOK_CENTER"
    STORY_SPLIT = "STORY_SPLIT"


class TextOverlay(BaseModel):
    headline: str = Field(description="Max 5 words, active voice")
    subtitle: str = Field(description="Max 12 words, benefit driven")
    suggested_font_color: str = Field(description="Hex colour legible over the image")


class CreativeBrief(BaseModel):
    reasoning: str
    layout_id: LayoutId
    image_prompt: str
    text_overlay: TextOverlay
    model_used: str = ""


class BrandColors(BaseModel):
    primary: Optional[str] = None
    secondary: Optional[str] = None
    accent: Optional[str] = None


CREATIVE_SYSTEM_PROMPT = """You are the lead creative director of an advertising studio. Turn a vague request into a commercially viable visual asset.

First reason about commercial intent (B2B needs trust and clean lines, B2C needs emotion), about where text stays fully legible, and about the element that stops the scroll.

Then choose exactly one layout:
- VISUAL_SOLO: pure imagery, no text.
- HOOK_CENTER: one punchy message, text centre or bottom-centre.
- STORY_SPLIT: image in the top 70%, text on a solid block in the bottom 30%.

Image prompt rules: name the lighting and the texture explicitly. Unless the layout is VISUAL_SOLO, ask for a clean, low-detail area where the text will sit.
Copy rules: headline at most 5 words, subtitle at most 12 words."""


class CreativeDirector:
    def __init__(self, resolver: CapabilityResolver, invoker: SingleAttemptInvoker, llm_factory: LLMFactory):
        self.resolver = resolver
        self.invoker = invoker
        self.llm_factory = llm_factory

    def _messages(self, user_prompt: str, brand_colors: Optional[BrandColors]) -> List[Dict[str, str]]:
        content = f"User request: {user_prompt}"
        if brand_colors is not None:
            colors = {k: v for k, v in brand_colors.model_dump().items() if v}
            if colors:
                content += "\nBrand colours: " + ", ".join(f"{k} {v}" for k, v in colors.items())
        return [{"role": "system", "content": CREATIVE_SYSTEM_PROMPT}, {"role": "user", "content": content}]

    async def direct(self, user_prompt: str, brand_colors: Optional[BrandColors] = None) -> CreativeBrief:
        if not user_prompt or not user_prompt.strip():
            raise ValueError("User prompt is required")

        model = await self.resolver.resolve(CapabilityClass.TEXT)
        llm = self.llm_factory.create(model, temperature=0.7)
        messages = self._messages(user_prompt.strip(), brand_colors)

        brief = await self.invoker.invoke(
            lambda: llm.ainvoke_structured(messages, CreativeBrief), name=f"creative:{model}"
        )
        brief = brief.model_copy(update={"model_used": model})
        logger.info("Creative direction from %s: layout %s", model, brief.layout_id.value)
        return brief
