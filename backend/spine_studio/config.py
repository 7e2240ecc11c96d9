from pydantic_settings import BaseSettings


# Models that require max_completion_tokens instead of max_tokens
_MAX_COMPLETION_TOKENS_MODELS = {"gpt-5.2", "gpt-5", "o1", "o3", "o3-mini", "o1-mini"}


class Settings(BaseSettings):
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    image_quality: str = "high"
    request_timeout: float = 60.0
    background_tolerance: float = 30.0
    background_edge_sampling: bool = True
    reference_assets_dir: str = "assets/spineboy/images"
    export_basename: str = "spineboy"
    character_facing: str = "right"
    log_level: str = "INFO"
    app_env: str = "development"
    cors_origins: str = "http://localhost:3000"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def max_tokens_param(self, n: int) -> dict:
        """Return the right max-tokens kwarg for the current model."""
        if self.openai_model in _MAX_COMPLETION_TOKENS_MODELS:
            return {"max_completion_tokens": n}
        return {"max_tokens": n}


settings = Settings()
