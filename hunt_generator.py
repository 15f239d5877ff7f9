import argparse
import json
import logging
import math
import random
import time

from adventure_templates import ADVENTURE_TEMPLATES
from api.pydantic_models import HuntPayload, ThemeSummary
from geo_utils import distance_km, offset_point

logger = logging.getLogger(__name__)

# Stops land roughly 200-500 meters from the template center.
MIN_STOP_OFFSET_DEG = 0.002
STOP_OFFSET_JITTER_DEG = 0.003


def is_known_theme(theme, catalog=ADVENTURE_TEMPLATES):
    return theme in catalog


def list_themes(catalog=ADVENTURE_TEMPLATES):
    """Summaries of every theme for the theme picker."""
    return [
        ThemeSummary(
            theme=key,
            title=theme_data['title'],
            description=theme_data['description'],
            templates=[template['name'] for template in theme_data['templates']],
        )
        for key, theme_data in catalog.items()
    ]


def select_template(theme, lat, lng, catalog=ADVENTURE_TEMPLATES):
    """
    Returns the template of `theme` whose center is closest to (lat, lng), or None
    if the theme is unknown. Ties keep the earlier template in catalog order.
    """
    theme_data = catalog.get(theme)
    if not theme_data or not theme_data['templates']:
        return None

    closest_template = None
    min_distance = math.inf
    for template in theme_data['templates']:
        center = template['location']
        distance = distance_km(lat, lng, center['lat'], center['lng'])
        if distance < min_distance:
            min_distance = distance
            closest_template = template
    return closest_template


def build_hunt_from_template(theme, location, rng=None, now=None, catalog=ADVENTURE_TEMPLATES):
    """
    Builds a hunt payload for `theme` near `location` from the template catalog.

    Stop i of N is placed at angle i/N * 2pi around the template center with a random
    radial offset drawn from `rng`. Returns None for an unknown theme.
    """
    template = select_template(theme, location.lat, location.lng, catalog=catalog)
    if template is None:
        return None

    rng = rng or random.Random()
    timestamp = int((now if now is not None else time.time()) * 1000)
    theme_data = catalog[theme]
    center = template['location']
    stop_count = len(template['stops'])

    stops = []
    for index, stop in enumerate(template['stops']):
        angle = (index / stop_count) * 2 * math.pi
        offset = MIN_STOP_OFFSET_DEG + rng.random() * STOP_OFFSET_JITTER_DEG
        lat, lng = offset_point(center['lat'], center['lng'], angle, offset)
        stops.append({
            'id': f"stop_{timestamp}_{index}",
            'title': stop['title'],
            'description': stop['description'],
            'location': {'lat': lat, 'lng': lng},
            'address': f"{template['name']} Area",
            'type': stop['type'],
            'challenge': dict(stop['challenge']),
            'completed': False,
            'points': stop['points'],
        })

    return HuntPayload.model_validate({
        'title': f"{theme_data['title']}: {template['name']}",
        'description': theme_data['description'],
        'location': {
            'lat': center['lat'],
            'lng': center['lng'],
            'address': f"{template['name']} Area",
        },
        'stops': stops,
    })


class TemplateHuntGenerator:
    """Deterministic-center hunt generator backed by the adventure catalog."""

    def __init__(self, rng=None, catalog=ADVENTURE_TEMPLATES):
        self.rng = rng or random.Random()
        self.catalog = catalog

    def generate(self, theme, location):
        payload = build_hunt_from_template(theme, location, rng=self.rng, catalog=self.catalog)
        if payload is not None:
            logger.info(f"Built '{theme}' hunt '{payload.title}' with {len(payload.stops)} stops from templates.")
        return payload


if __name__ == '__main__':
    from api.pydantic_models import Location

    parser = argparse.ArgumentParser(description='Preview a template-generated EcoQuest hunt.')
    parser.add_argument('--theme', type=str, required=True, choices=list(ADVENTURE_TEMPLATES))
    parser.add_argument('--lat', type=float, required=True)
    parser.add_argument('--lng', type=float, required=True)
    parser.add_argument('--seed', type=int, default=None)
    args = parser.parse_args()

    generator = TemplateHuntGenerator(rng=random.Random(args.seed))
    result = generator.generate(args.theme, Location(lat=args.lat, lng=args.lng))
    print(json.dumps(result.model_dump(mode="json"), indent=2))
