from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    elasticsearch_host: str = "localhost"
    elasticsearch_port: int = 9200
    elasticsearch_scheme: str = "http"
    elasticsearch_username: str = ""
    elasticsearch_password: str = ""
    elasticsearch_index: str = "documents"
    elasticsearch_timeout: float = 60.0

    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen2.5:7b"
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.1
    llm_timeout: float = 60.0
    translator_system_prompt: str | None = None

    embedding_model: str = "intfloat/multilingual-e5-base"
    embedding_dimension: int = 768
    embedding_workers: int = 2
    title_weight: float = 0.4
    content_weight: float = 0.6

    search_default_size: int = 10
    vector_min_score: float = 0.5
    similar_min_score: float = 1.5
    hybrid_text_boost: float = 1.0
    hybrid_vector_boost: float = 3.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
