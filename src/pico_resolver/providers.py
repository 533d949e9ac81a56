from typing import Any, Dict, List, Optional, Type

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from .config import LLMConfig
from .exceptions import ResolverConfigurationError
from .interfaces import LLM, LLMFactory

DEFAULT_TIMEOUT_SECONDS = 60


class LangChainAdapter(LLM):
    def __init__(self, chat_model: BaseChatModel, model_name: str = ""):
        self.model = chat_model
        self.model_name = model_name

    def _convert_messages(self, messages: List[Dict[str, str]]) -> List[BaseMessage]:
        lc_messages: List[BaseMessage] = []
        for msg in messages:
            if msg["role"] == "system":
                lc_messages.append(SystemMessage(content=msg["content"]))
            elif msg["role"] == "user":
                lc_messages.append(HumanMessage(content=msg["content"]))
            elif msg["role"] == "assistant":
                lc_messages.append(AIMessage(content=msg["content"]))
        return lc_messages

    async def ainvoke(self, messages: List[Dict[str, str]]) -> str:
        response = await self.model.ainvoke(self._convert_messages(messages))
        content = response.content
        if isinstance(content, list):
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return str(content)

    async def ainvoke_structured(self, messages: List[Dict[str, str]], output_schema: Type[Any]) -> Any:
        structured_model = self.model.with_structured_output(output_schema)
        return await structured_model.ainvoke(self._convert_messages(messages))


class LangChainLLMFactory(LLMFactory):
    def __init__(self, config: LLMConfig):
        self.config = config

    def create(self, model_name: str, temperature: float, max_tokens: Optional[int] = None) -> LLM:
        provider = "google"
        real_model_name = model_name
        if ":" in model_name:
            provider, real_model_name = model_name.split(":", 1)

        chat_model = self.create_chat_model(provider, real_model_name, temperature, max_tokens)
        return LangChainAdapter(chat_model, model_name=real_model_name)

    def has_key(self, provider: str) -> bool:
        return bool(self.config.api_keys.get(provider))

    def create_chat_model(
        self, provider: str, model_name: str, temperature: float, max_tokens: Optional[int]
    ) -> BaseChatModel:
        provider_lower = provider.lower()

        if provider_lower in ("google", "gemini"):
            api_key = self.config.api_keys.get("google")
            if not api_key:
                raise ResolverConfigurationError(
                    "API Key not found for provider 'google'. Set GOOGLE_GENERATIVE_AI_API_KEY."
                )
            return ChatGoogleGenerativeAI(
                model=model_name,
                google_api_key=api_key,
                temperature=temperature,
                max_output_tokens=max_tokens,
                timeout=DEFAULT_TIMEOUT_SECONDS,
                # Retrying is the invoker's decision, and it never retries.
                max_retries=0,
            )

        raise ValueError(f"Unknown LLM Provider: {provider}")
