from civicrag.api.app import create_app
from civicrag.api.services import Services, build_services

__all__ = ["Services", "build_services", "create_app"]
