from .animechan import AnimechanClient
from .myanimelist import MyAnimeListClient
from .response_shapes import parse_quote_list, parse_single_quote

__all__ = ["AnimechanClient", "MyAnimeListClient", "parse_quote_list", "parse_single_quote"]
