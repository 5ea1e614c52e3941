"""Request dependencies shared by the API routers."""

from ..core.flow.dispatcher import FlowDispatcher, create_dispatcher
from ..core.nexus.backend import ChainAbstractionBackend
from ..providers.nexus import get_nexus_provider
from ..services.templates import TemplateService


def get_backend() -> ChainAbstractionBackend:
    return get_nexus_provider()


def get_dispatcher() -> FlowDispatcher:
    return create_dispatcher(get_backend())


def get_template_service() -> TemplateService:
    return TemplateService()
