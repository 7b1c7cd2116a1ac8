"""
Asset basket helpers for the dashboard.

The dashboard keeps the selected assets in session state; these functions
compute the filtered views and the next selection without touching that
state, so every button callback is a single assignment.
"""

from typing import Iterable, List, Sequence


def matches_search(asset: str, search_term: str) -> bool:
    """Case-insensitive substring match; an empty term matches everything."""
    return search_term.strip().lower() in asset.lower()


def filter_available(
    assets: Sequence[str],
    selected: Sequence[str],
    search_term: str = ""
) -> List[str]:
    """
    List usable assets that are not selected yet and match the search.

    Args:
        assets: All usable assets, in upload order.
        selected: Currently selected assets.
        search_term: Text typed into the available-assets search box.

    Returns:
        Matching unselected assets, in upload order.
    """
    chosen = set(selected)
    return [a for a in assets if a not in chosen and matches_search(a, search_term)]


def filter_selected(selected: Sequence[str], search_term: str = "") -> List[str]:
    """List selected assets matching the selected-assets search box."""
    return [a for a in selected if matches_search(a, search_term)]


def add_assets(selected: Sequence[str], additions: Iterable[str]) -> List[str]:
    """Append assets to the selection, keeping order and skipping duplicates."""
    return list(dict.fromkeys([*selected, *additions]))


def remove_asset(selected: Sequence[str], asset: str) -> List[str]:
    return [a for a in selected if a != asset]
