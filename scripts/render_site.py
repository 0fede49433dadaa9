#!/usr/bin/env python3
"""Script to build the render plan for a restaurant."""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from restaurant_skins.config import Settings, configure_logging, get_settings
from restaurant_skins.errors import RenderError, RestaurantNotFoundError
from restaurant_skins.pipeline import SitePipeline


def main():
    parser = argparse.ArgumentParser(
        description="Build the skinned render plan for a restaurant"
    )
    parser.add_argument(
        "slug",
        help="Restaurant slug (data file name without .json)",
    )
    parser.add_argument(
        "--skin",
        default=None,
        help="Skin id (default: configured default skin)",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory of restaurant JSON files",
    )
    parser.add_argument(
        "--skins-dir",
        default=None,
        help="Directory of skins",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full render plan as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    overrides = {}
    if args.data_dir:
        overrides["data_dir"] = Path(args.data_dir)
    if args.skins_dir:
        overrides["skins_dir"] = Path(args.skins_dir)
    settings = Settings(**overrides) if overrides else get_settings()

    configure_logging("DEBUG" if args.verbose else "WARNING")
    pipeline = SitePipeline(settings=settings)

    try:
        plan = pipeline.render_restaurant(args.slug, skin_id=args.skin)
    except (RestaurantNotFoundError, RenderError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(plan.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        return

    print("=" * 50)
    print(f"RENDER PLAN: {plan.restaurant_slug}")
    print("=" * 50)
    print(f"Business: {plan.site.business.name}")
    print(f"Skin: {plan.skin_id} (requested: {plan.requested_skin_id})")
    if plan.used_fallback_skin:
        print("  - Fell back to the default skin")
    if plan.used_default_mapping:
        print("  - Using the default layout")
    print()
    print(f"Menu: {len(plan.site.menu.sections)} sections, {plan.site.menu.item_count} items")
    print(f"Token block: {len(plan.tokens_css)} bytes")
    print(f"Stylesheet: {len(plan.stylesheet)} bytes")
    print()
    print("Components:")
    for descriptor in plan.descriptors:
        variant = f" ({descriptor.variant})" if descriptor.variant else ""
        print(f"  - {descriptor.component_type}{variant}")
    if plan.warnings:
        print()
        print("Warnings:")
        for warning in plan.warnings:
            print(f"  - {warning}")


if __name__ == "__main__":
    main()
