"""Content flows of the studio site.

Each module defines one flow (schemas + prompt) and a `build_definition`
function. Nothing registers itself on import: `build_flow_registry` is the
single place where the registry is assembled.
"""

from __future__ import annotations

import logging

from core.flows import blog_post, caption, cors, moderation, search, service_description, theme
from core.flows.blog_post import generate_blog_post
from core.flows.caption import generate_caption
from core.flows.cors import CorsConfigurator, setup_cors
from core.flows.moderation import moderate_image
from core.flows.search import search_photos
from core.flows.service_description import generate_service_description
from core.flows.theme import customize_theme
from core.services.flow_runner import FlowRegistry

logger = logging.getLogger(__name__)

MODEL_FLOWS = (
    moderation,
    caption,
    search,
    theme,
    service_description,
    blog_post,
)


def build_flow_registry(*, storage: CorsConfigurator | None = None) -> FlowRegistry:
    """Build the registry of every flow.

    The storage CORS flow needs a configurator; without one it is left out.
    """

    registry = FlowRegistry()
    for module in MODEL_FLOWS:
        registry.register(module.build_definition())
    if storage is not None:
        registry.register(cors.build_definition(storage))
    else:
        logger.debug("No storage configurator given; '%s' flow not registered", cors.NAME)
    return registry


__all__ = [
    "CorsConfigurator",
    "MODEL_FLOWS",
    "build_flow_registry",
    "customize_theme",
    "generate_blog_post",
    "generate_caption",
    "generate_service_description",
    "moderate_image",
    "search_photos",
    "setup_cors",
]
