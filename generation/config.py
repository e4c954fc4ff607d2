from dataclasses import dataclass
import os


@dataclass
class GenerationConfig:
    llm_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:latest"
    openai_model: str = "gpt-3.5-turbo"
    document_top_k: int = 4
    history_top_k: int = 20
    output_tokens: int = 512
    temperature: float = 0.2
    timeout_seconds: float = 120.0
    max_retries: int = 3
    write_back_workers: int = 4

    @classmethod
    def from_env(cls) -> "GenerationConfig":
        def _int(name: str, default: int) -> int:
            value = os.environ.get(name)
            return int(value) if value else default

        def _float(name: str, default: float) -> float:
            value = os.environ.get(name)
            return float(value) if value else default

        return cls(
            llm_provider=os.environ.get("LLM_PROVIDER", cls.llm_provider),
            ollama_base_url=os.environ.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            ollama_model=os.environ.get("OLLAMA_MODEL", cls.ollama_model),
            openai_model=os.environ.get("OPENAI_MODEL", cls.openai_model),
            document_top_k=_int("CHAT_DOCUMENT_TOP_K", cls.document_top_k),
            history_top_k=_int("CHAT_HISTORY_TOP_K", cls.history_top_k),
            output_tokens=_int("GENERATION_OUTPUT_TOKENS", cls.output_tokens),
            temperature=_float("GENERATION_TEMPERATURE", cls.temperature),
            timeout_seconds=_float("GENERATION_TIMEOUT_SECONDS", cls.timeout_seconds),
            max_retries=_int("GENERATION_MAX_RETRIES", cls.max_retries),
            write_back_workers=_int("CHAT_WRITE_BACK_WORKERS", cls.write_back_workers),
        )
