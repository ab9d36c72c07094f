from .config import AppConfig, load_config
from .service import Services, build_services

__version__ = "0.1.0"

__all__ = ["AppConfig", "Services", "build_services", "load_config"]
