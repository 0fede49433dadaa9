"""Render plan orchestration: normalize, resolve tokens, scope CSS, evaluate mapping."""

import time
from typing import Any

import structlog

from restaurant_skins.config import Settings, get_settings
from restaurant_skins.data.restaurants import RestaurantStore
from restaurant_skins.errors import RenderError, SkinNotFoundError, StylesheetReadError
from restaurant_skins.mapping.evaluator import MappingEvaluator
from restaurant_skins.mapping.loader import MappingLoader
from restaurant_skins.metrics import record_fallback, record_render
from restaurant_skins.models.site import NormalizedSite
from restaurant_skins.models.skin import RenderPlan
from restaurant_skins.normalization.normalizer import SiteNormalizer
from restaurant_skins.rendering.registry import ComponentRegistry
from restaurant_skins.skins.cache import SkinCache
from restaurant_skins.skins.css_scoper import ScopeOptions, ScopeResult, scope_css
from restaurant_skins.skins.store import SkinStore
from restaurant_skins.skins.tokens import TokenResolver

logger = structlog.get_logger()


class SitePipeline:
    """Build render plans for restaurants.

    Pipeline steps:
    1. Normalize: raw record -> NormalizedSite
    2. Tokens: base tokens + overrides -> ``[data-skin]`` variable block
    3. Stylesheet: skin.css -> scoped stylesheet (cached)
    4. Mapping: map.yml -> ComponentDescriptors

    A skin that cannot be loaded falls back to ``settings.default_skin_id``.
    Only when both are unavailable does rendering fail with RenderError.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: SkinStore | None = None,
        cache: SkinCache | None = None,
        registry: ComponentRegistry | None = None,
        restaurants: RestaurantStore | None = None,
        normalizer: SiteNormalizer | None = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Application settings (defaults to the cached settings)
            store: Skin directory reader
            cache: Skin artifact cache shared by tokens, stylesheet and mapping
            registry: Component registry providing the default layout
            restaurants: Restaurant data store
            normalizer: Raw record normalizer
        """
        self.settings = settings or get_settings()
        self.store = store or SkinStore(self.settings.skins_dir)
        self.cache = cache or SkinCache(enabled=self.settings.skin_cache_enabled)
        self.registry = registry or ComponentRegistry()
        self.restaurants = restaurants or RestaurantStore(
            self.settings.data_dir,
            self.settings.overrides_dir,
        )
        self.normalizer = normalizer or SiteNormalizer(default_currency=self.settings.default_currency)
        self.tokens = TokenResolver(self.store, self.cache)
        self.mappings = MappingLoader(self.store, self.cache, self.registry)

    @property
    def default_skin_id(self) -> str:
        return self.settings.default_skin_id

    def scope_options(self) -> ScopeOptions:
        return ScopeOptions(
            scope_keyframes=self.settings.css_scope_keyframes,
            scope_variables=self.settings.css_scope_variables,
            add_containment=self.settings.css_add_containment,
            minify=self.settings.css_minify,
            enforce_naming=self.settings.css_enforce_naming,
        )

    def tokens_css(self, skin_id: str, overrides: Any = None) -> str:
        """Variable block for a skin. Raises SkinNotFoundError."""
        prefix = skin_id if self.settings.css_scope_variables else None
        return self.tokens.resolve(skin_id, overrides, variable_prefix=prefix)

    def stylesheet(self, skin_id: str) -> ScopeResult:
        """Scoped stylesheet for a skin, cached. Raises SkinNotFoundError.

        An unreadable skin.css yields an empty stylesheet with a warning.
        """
        return self.cache.get_or_load(skin_id, "css", lambda: self._scope_stylesheet(skin_id))

    def _scope_stylesheet(self, skin_id: str) -> ScopeResult:
        try:
            source = self.store.read_css(skin_id)
        except StylesheetReadError as e:
            record_fallback("stylesheet_unreadable")
            return ScopeResult(css="", warnings=[f"Could not read stylesheet, left empty: {e.detail}"])
        return scope_css(source, skin_id, self.scope_options())

    def render(
        self,
        raw: dict,
        skin_id: str | None = None,
        overrides: Any = None,
        slug: str = "",
    ) -> RenderPlan:
        """Build the render plan for one raw restaurant record.

        Args:
            raw: Raw restaurant record
            skin_id: Requested skin (defaults to the configured default skin)
            overrides: Token overrides for the requested skin
            slug: Restaurant identifier, carried into the plan

        Returns:
            RenderPlan

        Raises:
            RenderError: Neither the requested nor the default skin is available
        """
        start_time = time.time()
        requested = skin_id or self.default_skin_id
        site = self.normalizer.normalize(raw, slug=slug)

        candidates = [requested]
        if self.default_skin_id != requested:
            candidates.append(self.default_skin_id)

        for candidate in candidates:
            try:
                plan = self._build_plan(
                    site,
                    requested,
                    candidate,
                    overrides if candidate == requested else None,
                )
            except SkinNotFoundError as e:
                logger.warning("skin_unavailable", skin_id=candidate, reason=e.reason)
                if candidate == requested and len(candidates) > 1:
                    record_fallback("skin_not_found")
                continue

            duration = time.time() - start_time
            record_render(plan.skin_id, duration)
            logger.info(
                "render_plan_built",
                skin_id=plan.skin_id,
                slug=slug,
                requested_skin_id=requested,
                components=len(plan.descriptors),
                warnings=len(plan.warnings),
                duration_ms=round(duration * 1000, 2),
            )
            return plan

        logger.error("render_failed", requested_skin_id=requested, default_skin_id=self.default_skin_id)
        raise RenderError(requested, self.default_skin_id)

    def render_restaurant(self, slug: str, skin_id: str | None = None) -> RenderPlan:
        """Load a restaurant by slug, with its token overrides, and render it.

        Raises:
            RestaurantNotFoundError: No data file for ``slug``
            RenderError: Neither the requested nor the default skin is available
        """
        with structlog.contextvars.bound_contextvars(slug=slug):
            raw = self.restaurants.load(slug)
            requested = skin_id or self.default_skin_id
            overrides = self.restaurants.load_overrides(requested, slug)
            return self.render(raw, skin_id=requested, overrides=overrides, slug=slug)

    def invalidate(self, skin_id: str | None = None, artifact: str | None = None) -> int:
        """Drop cached artifacts for one skin, or everything when ``skin_id`` is None."""
        if skin_id is None:
            return self.cache.clear()
        return self.cache.invalidate(skin_id, artifact)

    def _build_plan(
        self,
        site: NormalizedSite,
        requested: str,
        skin_id: str,
        overrides: Any,
    ) -> RenderPlan:
        warnings: list[str] = []
        if skin_id != requested:
            warnings.append(f"Skin '{requested}' unavailable, rendered with '{skin_id}'")

        tokens_css = self.tokens_css(skin_id, overrides)
        stylesheet = self.stylesheet(skin_id)
        warnings.extend(stylesheet.warnings)

        mapping = self.mappings.load_or_default(skin_id)
        if mapping.is_default:
            warnings.append(f"Skin '{skin_id}' has no usable mapping, using the default layout")

        evaluator = MappingEvaluator()
        descriptors = evaluator.evaluate(mapping, site)
        warnings.extend(evaluator.diagnostics)

        return RenderPlan(
            restaurant_slug=site.metadata.slug,
            requested_skin_id=requested,
            skin_id=skin_id,
            used_fallback_skin=skin_id != requested,
            used_default_mapping=mapping.is_default,
            tokens_css=tokens_css,
            stylesheet=stylesheet.css,
            descriptors=descriptors,
            site=site,
            warnings=warnings,
        )
