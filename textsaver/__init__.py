from textsaver.app import create_app
from textsaver.config import Config, load_config

__all__ = ["Config", "create_app", "load_config"]
