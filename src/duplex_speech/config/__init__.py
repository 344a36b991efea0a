from .settings import DuplexSpeechConfig, load_config, setup_logging, create_example_env_file

__all__ = ["DuplexSpeechConfig", "load_config", "setup_logging", "create_example_env_file"]
