"""LLM configuration for the dataset chat assistant."""

from langchain_core.language_models import BaseChatModel

# Default models per provider
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-20241022",
    "gemini": "gemini-2.5-pro",
}

SUPPORTED_PROVIDERS = set(DEFAULT_MODELS.keys())

# UI model labels that differ from the API model id
MODEL_ALIASES = {
    "o3-mini-2025-01-31": "o3-mini",
    "gemini-2.5-pro-preview-06-05": "gemini-2.5-pro",
}


def resolve_model_name(model: str) -> str:
    """Map a UI model label to the id the provider API expects."""
    return MODEL_ALIASES.get(model, model)


def get_llm(provider: str = "openai", model: str = None, **kwargs) -> BaseChatModel:
    """
    Initialize and return a chat model.

    Args:
        provider: "openai" | "anthropic" | "gemini"
        model: Model name override. If None, uses the default for the provider.
        **kwargs: Additional keyword arguments passed to the chat model
            constructor, e.g. ``api_key`` or ``temperature``.

    Returns:
        Configured LangChain chat model.

    Raises:
        ValueError: If the provider is not supported.
    """
    provider = provider.lower()

    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported LLM provider: '{provider}'. "
            f"Supported providers: {sorted(SUPPORTED_PROVIDERS)}"
        )

    model_name = resolve_model_name(model or DEFAULT_MODELS[provider])

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=model_name, **kwargs)

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(model=model_name, **kwargs)

    # provider == "gemini"
    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(model=model_name, **kwargs)
