"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Generative responder settings."""

    bot_name: str = "asisbot"
    model: str = "groq/llama-3.1-8b-instant"
    temperature: float = 0.6
    max_tokens: int = 1024
    memory_limit: int = 8
    request_timeout: float = 30.0
    persona: str = (
        "Kamu adalah {bot_name}, teman ngobrol yang santai 🙂. "
        "Jawaban tidak formal, pakai emoticon seperlunya. "
        "Jangan pernah berikan informasi sensitif atau data pribadi."
    )


class ConfidenceConfig(BaseModel):
    """Thresholds for deciding that an AI answer is too unsure to send."""

    min_length: int = 3
    hedges: list[str] = Field(default_factory=lambda: [
        "tidak tahu", "gak tahu", "nggak tahu", "ga tau", "gak tau",
        "kurang yakin", "tidak yakin", "belum tahu", "belum kepikiran",
        "maaf", "don't know", "do not know", "not sure", "sorry",
    ])
    check_framing: str = "Bentar, aku cek dulu ya 🔎"
    search_framing: str = "🔎 Hasil pencarian:"


class DirectivesConfig(BaseModel):
    """Admin directive parsing and group policy."""

    prefix: str = "."
    # Directives sent inside a group are checked against the same admin list
    # using the participant id; when False they are ignored in groups.
    allow_in_groups: bool = True


class IdentityConfig(BaseModel):
    """Fixed answers about the bot itself."""

    creator_answer: str = "Aku dibuat oleh **Agus Hermanto**, didukung Meta 🙂"
    origin_date_answer: str = "Aku lahir di **Januari 2026** 😄"


class WeatherConfig(BaseModel):
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    language: str = "id"
    timeout: float = 10.0


class ClockConfig(BaseModel):
    timezone: str = "Asia/Jakarta"


class SearchConfig(BaseModel):
    provider: str = "duckduckgo"  # "brave" | "duckduckgo"
    api_key: str = ""
    max_results: int = 3
    timeout: float = 15.0


class ToolsConfig(BaseModel):
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


class ProviderConfig(BaseModel):
    api_key: str = ""
    api_base: str | None = None


class ProvidersConfig(BaseModel):
    groq: ProviderConfig = Field(default_factory=ProviderConfig)


class Config(BaseModel):
    """Root configuration for asisbot."""

    agent: AgentConfig = Field(default_factory=AgentConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    directives: DirectivesConfig = Field(default_factory=DirectivesConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    state_path: str = ""  # empty: <state_dir>/state.json

    @property
    def state_file(self) -> Path:
        """Expanded path of the persisted bot state."""
        if self.state_path:
            return Path(self.state_path).expanduser()
        from asisbot.utils.helpers import get_data_path
        return get_data_path() / "state.json"
