# genai_bridge/__init__.py
"""
genai-bridge
============

Serve an OpenAI-compatible chat-completion backend through the structured
(Gemini-style) content-generation contract.
"""

__version__ = "0.1.0"

# public name -> defining module
_LAZY_EXPORTS = {
    "OpenAICompatibleContentGenerator": "genai_bridge.generator",
    "ToolCallAccumulator": "genai_bridge.streaming",
    "process_stream_chunk": "genai_bridge.streaming",
    "normalize_contents": "genai_bridge.normalizer",
    "normalize_schema": "genai_bridge.normalizer",
    "extract_tools": "genai_bridge.normalizer",
    "to_flat_messages": "genai_bridge.converter",
    "to_openai_messages": "genai_bridge.converter",
    "from_completion": "genai_bridge.converter",
    "count_tokens": "genai_bridge.tokens",
    "estimate_tokens": "genai_bridge.tokens",
    "BridgeConfig": "genai_bridge.config",
    "load_config": "genai_bridge.config",
}


def get_version():
    """Get genai-bridge version"""
    return __version__


def __getattr__(name):
    """Lazy loading, so importing the package does not import the SDKs"""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'genai_bridge' has no attribute '{name}'")

    import importlib

    value = getattr(importlib.import_module(module_name), name)
    globals()[name] = value
    return value


__all__ = ["__version__", "get_version", *_LAZY_EXPORTS]
