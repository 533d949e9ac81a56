from pico_ioc import factory, provides

from .auth import GoogleAccessTokenProvider
from .catalog import VertexModelCatalog
from .clock import SystemClock
from .config import LLMConfig, ResolverSettings
from .gate import RequestSpacingGate
from .generation import CreativeDirector, HeadlineService, ImageGenerationService
from .interfaces import AccessTokenProvider, Clock, LLMFactory, ModelCatalog, ModelProber
from .invoker import SingleAttemptInvoker
from .priority import PriorityTables
from .probe import VertexModelProber
from .providers import LangChainLLMFactory
from .resolver import CapabilityResolver


@factory
class ResolverInfrastructureFactory:
    @provides(ResolverSettings, scope="singleton")
    def provide_settings(self) -> ResolverSettings:
        return ResolverSettings.from_env()

    @provides(LLMConfig, scope="singleton")
    def provide_llm_config(self, settings: ResolverSettings) -> LLMConfig:
        api_keys = {"google": settings.google_api_key} if settings.google_api_key else {}
        return LLMConfig(api_keys=api_keys)

    @provides(PriorityTables, scope="singleton")
    def provide_priority_tables(self) -> PriorityTables:
        return PriorityTables.defaults()

    @provides(Clock, scope="singleton")
    def provide_clock(self) -> Clock:
        return SystemClock()

    @provides(AccessTokenProvider, scope="singleton")
    def provide_token_provider(self, settings: ResolverSettings) -> AccessTokenProvider:
        return GoogleAccessTokenProvider(settings)

    @provides(ModelCatalog, scope="singleton")
    def provide_catalog(self, settings: ResolverSettings, token_provider: AccessTokenProvider) -> ModelCatalog:
        return VertexModelCatalog(settings, token_provider)

    @provides(ModelProber, scope="singleton")
    def provide_prober(self, settings: ResolverSettings, token_provider: AccessTokenProvider) -> ModelProber:
        return VertexModelProber(settings, token_provider)

    @provides(LLMFactory, scope="singleton")
    def provide_llm_factory(self, config: LLMConfig) -> LLMFactory:
        return LangChainLLMFactory(config)


@factory
class GenerationServicesFactory:
    @provides(ImageGenerationService, scope="singleton")
    def provide_image_service(
        self,
        settings: ResolverSettings,
        resolver: CapabilityResolver,
        invoker: SingleAttemptInvoker,
        token_provider: AccessTokenProvider,
        gate: RequestSpacingGate,
    ) -> ImageGenerationService:
        return ImageGenerationService(settings, resolver, invoker, token_provider, gate)

    @provides(HeadlineService, scope="singleton")
    def provide_headline_service(
        self,
        resolver: CapabilityResolver,
        invoker: SingleAttemptInvoker,
        llm_factory: LLMFactory,
        config: LLMConfig,
    ) -> HeadlineService:
        return HeadlineService(resolver, invoker, llm_factory, api_key_present=bool(config.api_keys.get("google")))

    @provides(CreativeDirector, scope="singleton")
    def provide_creative_director(
        self, resolver: CapabilityResolver, invoker: SingleAttemptInvoker, llm_factory: LLMFactory
    ) -> CreativeDirector:
        return CreativeDirector(resolver, invoker, llm_factory)
