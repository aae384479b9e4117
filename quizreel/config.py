from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from quizreel.models.domain import TimingConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QUIZREEL_", env_file=".env", env_file_encoding="utf-8")

    app_name: str = "quizreel"
    host: str = "0.0.0.0"
    port: int = 3000

    # Per-question timing, seconds. total_duration is authoritative.
    question_duration: float = 2.5
    pause_duration: float = 3.0
    answer_duration: float = 2.5
    total_duration: float = 8.0
    countdown_enabled: bool = True
    intro_enabled: bool = True
    intro_duration: float = 4.0
    duration_tolerance: float = 0.1

    # Output frame and encode profile, shared by every clip
    video_width: int = 1080
    video_height: int = 1920
    fps: int = 30
    video_codec: str = "libx264"
    video_preset: str = "veryfast"
    pixel_format: str = "yuv420p"
    audio_codec: str = "aac"
    audio_sample_rate: int = 48000
    audio_channels: int = 2
    font_file: str = ""
    question_font_size: int = 56
    answer_font_size: int = 50
    title_font_size: int = 72
    question_color: str = "white"
    answer_color: str = "yellow"
    text_wrap_width: int = 28

    # Filesystem layout
    work_dir: str = "temp"
    output_dir: str = "outputs"
    assets_dir: str = "assets"
    ffmpeg_path: str = ""
    ffprobe_path: str = ""
    ffmpeg_timeout: float | None = None

    # Provider response cache
    cache_enabled: bool = True
    cache_dir: str = "cache"
    cache_ttl_seconds: float = 86400.0

    # Providers
    http_timeout: float = 30.0
    ai_images_enabled: bool = False
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com"
    openai_image_model: str = "dall-e-3"
    openai_image_size: str = "1024x1792"
    openai_image_quality: str = "standard"
    openai_image_style: str = "vivid"
    voice_enabled: bool = False
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "9BWtsMINqrJLrRacOk9x"
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.75
    voice_style: float = 0.0
    voice_speaker_boost: bool = True

    # Queue
    queue_max_attempts: int = 3
    queue_backoff_seconds: float = 5.0
    kafka_enabled: bool = False
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_topic: str = "quiz_video_jobs"
    kafka_updates_topic: str = "quiz_video_updates"
    kafka_group_id: str = "quizreel-consumer"

    def timing(self) -> TimingConfig:
        return TimingConfig(
            question_duration=self.question_duration,
            pause_duration=self.pause_duration,
            answer_duration=self.answer_duration,
            total_duration=self.total_duration,
            countdown_enabled=self.countdown_enabled,
            intro_enabled=self.intro_enabled,
            intro_duration=self.intro_duration,
            tolerance=self.duration_tolerance,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
