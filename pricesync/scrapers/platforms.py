# pricesync/scrapers/platforms.py

"""Platform search-URL templates."""

from urllib.parse import quote

from pricesync.config.settings import Settings


def _templates() -> dict[str, str]:
    return {
        p["id"]: p["search_url"]
        for p in Settings.AVAILABLE_PLATFORMS
    }


def is_supported(platform_id: str) -> bool:
    """Return True if *platform_id* has a search URL template."""
    return platform_id in _templates()


def build_search_url(platform_id: str, product_name: str) -> str:
    """Percent-encode *product_name* into the platform's search URL.

    Returns an empty string for unrecognised platform ids; callers
    treat that as "skip this platform".
    """
    template = _templates().get(platform_id)
    if template is None:
        return ""
    return template.format(query=quote(product_name, safe=""))
