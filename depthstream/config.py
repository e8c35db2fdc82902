"""
Application configuration settings.

Responsibilities:
- Load environment variables
- Define default paths for models and outputs
- Provide defaults for the command-line flags
"""

import os


class Settings:
    PROJECT_NAME: str = "depthstream"
    MODEL_DIR: str = os.getenv("DEPTHSTREAM_MODEL_DIR", "models")
    MODEL_NAME: str = os.getenv("DEPTHSTREAM_MODEL", "")
    BACKEND: str = os.getenv("DEPTHSTREAM_BACKEND", "cpu")
    COLORMAP: str = os.getenv("DEPTHSTREAM_COLORMAP", "inferno")
    OUTPUT_DIR: str = os.getenv("DEPTHSTREAM_OUTPUT_DIR", "outputs")
    LOG_LEVEL: str = os.getenv("DEPTHSTREAM_LOG_LEVEL", "INFO")


settings = Settings()
