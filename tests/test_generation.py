import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from pico_resolver.config import CapabilityClass
from pico_resolver.exceptions import GenerationThrottledError, InferenceError, ResolverConfigurationError
from pico_resolver.gate import RequestSpacingGate
from pico_resolver.generation import (
    BrandColors,
    CreativeBrief,
    CreativeDirector,
    HeadlineService,
    ImageGenerationService,
    LayoutId,
    TextOverlay,
    clean_headline,
)
from pico_resolver.interfaces import LLM, LLMFactory
from pico_resolver.invoker import SingleAttemptInvoker
from pico_resolver.prompts import TemplateType, style_chip


@pytest.fixture
def invoker(tracer):
    return SingleAttemptInvoker(tracer)


@pytest.fixture
def resolver(make_resolver):
    return make_resolver()


@pytest.fixture
def make_image_service(settings, resolver, invoker, mock_token_provider, clock):
    def _make(handler):
        return ImageGenerationService(
            settings,
            resolver,
            invoker,
            mock_token_provider,
            RequestSpacingGate(settings, clock),
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def llm():
    llm = MagicMock(spec=LLM)
    llm.ainvoke = AsyncMock(return_value='"Bold Ideas"\nsecond line')
    return llm


@pytest.fixture
def llm_factory(llm):
    factory = MagicMock(spec=LLMFactory)
    factory.create.return_value = llm
    return factory


class TestImageGenerationService:
    @pytest.mark.asyncio
    async def test_generates_data_uris_with_resolved_model(self, make_image_service):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "QUJD", "mimeType": "image/jpeg"}]})

        images = await make_image_service(handler).generate("a lighthouse at dusk")

        assert images == ["data:image/jpeg;base64,QUJD"]
        assert requests[0].url.path.endswith("/models/v3:predict")
        body = json.loads(requests[0].content)
        assert body["instances"] == [{"prompt": "a lighthouse at dusk"}]
        assert body["parameters"]["sampleCount"] == 1

    @pytest.mark.asyncio
    async def test_template_and_style_expand_the_prompt(self, make_image_service):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "QUJD"}]})

        await make_image_service(handler).generate(
            "coffee beans", template=TemplateType.TWO_COLUMN, style=style_chip("Moody"), brand_color="#4285f4"
        )

        prompt = json.loads(requests[0].content)["instances"][0]["prompt"]
        assert prompt.startswith("coffee beans, moody atmosphere")
        assert "leave right 50% empty" in prompt
        assert "incorporate google blue accent colors" in prompt

    @pytest.mark.asyncio
    async def test_missing_mime_defaults_to_png(self, make_image_service):
        service = make_image_service(
            lambda request: httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "QUJD"}, {}]})
        )
        assert await service.generate("x") == ["data:image/png;base64,QUJD"]

    @pytest.mark.asyncio
    async def test_quota_error_is_raised_after_one_call(self, make_image_service):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}})

        with pytest.raises(InferenceError) as exc_info:
            await make_image_service(handler).generate("x")

        assert exc_info.value.status == 429
        assert exc_info.value.model == "v3"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_empty_predictions_raise(self, make_image_service):
        service = make_image_service(lambda request: httpx.Response(200, json={"predictions": []}))
        with pytest.raises(InferenceError, match="No images"):
            await service.generate("x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt, count", [("", 1), ("   ", 1), ("x", 0), ("x", 5)])
    async def test_invalid_input(self, make_image_service, prompt, count):
        with pytest.raises(ValueError):
            await make_image_service(lambda request: httpx.Response(200)).generate(prompt, count)

    @pytest.mark.asyncio
    async def test_requires_project(self, make_image_service, settings):
        settings.project_id = None
        with pytest.raises(ResolverConfigurationError):
            await make_image_service(lambda request: httpx.Response(200)).generate("x")

    @pytest.mark.asyncio
    async def test_session_spacing(self, make_image_service, clock):
        ok = {"predictions": [{"bytesBase64Encoded": "QUJD"}]}
        service = make_image_service(lambda request: httpx.Response(200, json=ok))

        await service.generate("x", session_id="s1")
        with pytest.raises(GenerationThrottledError):
            await service.generate("x", session_id="s1")
        await service.generate("x", session_id="s2")

        clock.advance(30)
        await service.generate("x", session_id="s1")


class TestCleanHeadline:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Bold Ideas", "Bold Ideas"),
            ('"Bold Ideas"', "Bold Ideas"),
            ("\n\n  'Bold Ideas'  \nExplanation", "Bold Ideas"),
            ("", ""),
        ],
    )
    def test_clean(self, raw, expected):
        assert clean_headline(raw) == expected


class TestHeadlineService:
    @pytest.mark.asyncio
    async def test_uses_resolved_text_model(self, resolver, invoker, llm_factory, llm):
        service = HeadlineService(resolver, invoker, llm_factory, api_key_present=True)

        assert await service.generate("coffee beans") == "Bold Ideas"
        llm_factory.create.assert_called_once_with("gemini-2.0-flash-001", temperature=0.9, max_tokens=32)
        [messages] = llm.ainvoke.await_args.args
        assert "coffee beans" in messages[0]["content"]

    @pytest.mark.asyncio
    async def test_without_api_key_capitalises_subject(self, resolver, invoker, llm_factory):
        service = HeadlineService(resolver, invoker, llm_factory, api_key_present=False)

        assert await service.generate("  coffee beans ") == "Coffee beans"
        llm_factory.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_answer_falls_back_to_subject(self, resolver, invoker, llm_factory, llm):
        llm.ainvoke.return_value = "  \n"
        service = HeadlineService(resolver, invoker, llm_factory, api_key_present=True)

        assert await service.generate("coffee") == "coffee"

    @pytest.mark.asyncio
    async def test_failure_is_not_retried(self, resolver, invoker, llm_factory, llm):
        llm.ainvoke.side_effect = RuntimeError("429 Too Many Requests")
        service = HeadlineService(resolver, invoker, llm_factory, api_key_present=True)

        with pytest.raises(RuntimeError):
            await service.generate("coffee")
        assert llm.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_subject_is_required(self, resolver, invoker, llm_factory):
        with pytest.raises(ValueError):
            await HeadlineService(resolver, invoker, llm_factory, api_key_present=True).generate(" ")


class TestCreativeDirector:
    @pytest.fixture
    def brief(self):
        return CreativeBrief(
            reasoning="B2C, emotional",
            layout_id=LayoutId.HOOK_CENTER,
            image_prompt="Soft morning light on roasted beans, matte texture, clean lower third",
            text_overlay=TextOverlay(headline="Wake Up Bold", subtitle="Fresh roast daily", suggested_font_color="#FFFFFF"),
        )

    @pytest.mark.asyncio
    async def test_direct_records_model(self, resolver, invoker, llm_factory, llm, brief):
        llm.ainvoke_structured = AsyncMock(return_value=brief)
        director = CreativeDirector(resolver, invoker, llm_factory)

        result = await director.direct("ad for a coffee shop")

        assert result.model_used == "gemini-2.0-flash-001"
        assert result.layout_id == LayoutId.HOOK_CENTER
        messages, schema = llm.ainvoke_structured.await_args.args
        assert schema is CreativeBrief
        assert messages[0]["role"] == "system"
        assert messages[1]["content"] == "User request: ad for a coffee shop"

    @pytest.mark.asyncio
    async def test_brand_colours_are_passed_on(self, resolver, invoker, llm_factory, llm, brief):
        llm.ainvoke_structured = AsyncMock(return_value=brief)
        director = CreativeDirector(resolver, invoker, llm_factory)

        await director.direct("ad", brand_colors=BrandColors(primary="#112233", accent="#FF0000"))

        messages, _ = llm.ainvoke_structured.await_args.args
        assert "primary #112233" in messages[1]["content"]
        assert "accent #FF0000" in messages[1]["content"]
        assert "secondary" not in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_prompt_is_required(self, resolver, invoker, llm_factory):
        with pytest.raises(ValueError):
            await CreativeDirector(resolver, invoker, llm_factory).direct("")
