# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""View renderers turning templates into message bodies.

Any object with a ``render(template, params) -> str`` method can act as the
mail view renderer. ``create_view_renderer()`` picks one in this order:

1. a renderer supplied by the application (an object with ``render``, or a
   plain callable taking ``(template, params)``), used as-is;
2. a Jinja2 renderer built from the ``[view]`` configuration:
   ``template_map`` entries, ``template_path_stack`` directories, or both
   with the map searched first;
3. a Jinja2 renderer with an empty loader, reporting every template as
   missing.

Templates can be wrapped in a layout by passing ``layout`` in the params;
the rendered template is exposed to the layout as ``content``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import jinja2
from markupsafe import Markup

from .config_loader import ViewConfig
from .exceptions import CompositionError
from .logger import get_logger

LAYOUT_PARAM = "layout"

logger = get_logger("MailView")


@runtime_checkable
class MailViewRenderer(Protocol):
    """Renders a named template with variables into a string."""

    def render(self, template: str, params: Mapping[str, Any] | None = None) -> str: ...


class CallableMailViewRenderer:
    """Adapts a ``(template, params) -> str`` callable to MailViewRenderer."""

    def __init__(self, func: Callable[[str, Mapping[str, Any]], str]):
        self._func = func

    def render(self, template: str, params: Mapping[str, Any] | None = None) -> str:
        try:
            return self._func(template, dict(params or {}))
        except CompositionError:
            raise
        except Exception as e:
            raise CompositionError(f"Error rendering template '{template}': {e}") from e


class JinjaMailViewRenderer:
    """MailViewRenderer backed by a Jinja2 environment."""

    def __init__(self, environment: jinja2.Environment):
        self.environment = environment

    def _render_one(self, template: str, params: Mapping[str, Any]) -> str:
        try:
            return self.environment.get_template(template).render(**params)
        except jinja2.TemplateError as e:
            raise CompositionError(f"Error rendering template '{template}': {e}") from e

    def render(self, template: str, params: Mapping[str, Any] | None = None) -> str:
        params = dict(params or {})
        layout = params.pop(LAYOUT_PARAM, None)
        content = self._render_one(template, params)
        if not layout:
            return content
        return self._render_one(layout, {**params, "content": Markup(content)})


def _template_map_loader(template_map: Mapping[str, str]) -> jinja2.FunctionLoader:
    def load(name: str) -> tuple[str, str, Callable[[], bool]] | None:
        path = template_map.get(name)
        if path is None:
            return None
        file_path = Path(path)
        try:
            source = file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        mtime = file_path.stat().st_mtime
        return source, str(file_path), lambda: file_path.exists() and file_path.stat().st_mtime == mtime

    return jinja2.FunctionLoader(load)


def build_template_loader(view_config: ViewConfig) -> jinja2.BaseLoader | None:
    """Build the Jinja2 loader matching the configured lookup strategies."""
    if view_config.is_empty:
        return None

    loaders: list[jinja2.BaseLoader] = []
    if view_config.template_map:
        loaders.append(_template_map_loader(view_config.template_map))
    if view_config.template_path_stack:
        loaders.append(jinja2.FileSystemLoader(view_config.template_path_stack))

    if len(loaders) == 1:
        return loaders[0]
    return jinja2.ChoiceLoader(loaders)


def create_view_renderer(
    view_config: ViewConfig | None = None,
    renderer: Any = None,
) -> MailViewRenderer:
    """Select the view renderer used to render email templates.

    Args:
        view_config: Template lookup settings for the default renderer.
        renderer: Application-provided renderer or render callable.

    Returns:
        A MailViewRenderer.

    Raises:
        TypeError: If ``renderer`` is neither a renderer nor a callable.
    """
    if renderer is not None:
        if isinstance(renderer, MailViewRenderer):
            logger.debug("Using application view renderer %s", type(renderer).__name__)
            return renderer
        if callable(renderer):
            return CallableMailViewRenderer(renderer)
        raise TypeError(f"Unsupported view renderer: {renderer!r}")

    view_config = view_config or ViewConfig()
    environment = jinja2.Environment(
        loader=build_template_loader(view_config) or jinja2.DictLoader({}),
        autoescape=jinja2.select_autoescape(["html", "htm", "xml"]),
    )
    return JinjaMailViewRenderer(environment)
