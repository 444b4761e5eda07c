import httpx

from .config import TMDB_IMAGE_BASE_URL, TMDB_LANGUAGE, tmdb_api_key

BASE_URL = "https://api.themoviedb.org/3"
SEARCH_TYPES = ("multi", "movie", "tv")
UNTITLED = "Untitled"
_client: httpx.AsyncClient | None = None


class MissingApiKeyError(RuntimeError):
    pass


def _get_api_key() -> str:
    key = tmdb_api_key()
    if not key:
        raise MissingApiKeyError("TMDB_API_KEY environment variable not set.")
    return key


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=10)
    return _client


async def close_client() -> None:
    global _client
    if _client:
        await _client.aclose()
        _client = None


async def _get(path: str, params: dict | None = None) -> dict:
    params = params or {}
    params["api_key"] = _get_api_key()
    client = await _get_client()
    resp = await client.get(f"{BASE_URL}{path}", params=params)
    resp.raise_for_status()
    return resp.json()


async def search(query: str, page: int = 1, search_type: str = "multi") -> dict:
    if search_type not in SEARCH_TYPES:
        raise ValueError(f"Unsupported search type: {search_type}")
    return await _get(
        f"/search/{search_type}",
        {
            "query": query,
            "page": page,
            "include_adult": "false",
            "language": TMDB_LANGUAGE,
        },
    )


def poster_url(poster_path: str | None) -> str | None:
    if not poster_path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}{poster_path}"


def normalize_result(item: dict, media_type: str) -> dict:
    """Flatten a catalog movie or tv result into the shape lists accept."""
    if media_type == "movie":
        title = item.get("title") or item.get("original_title")
        release_date = item.get("release_date")
    else:
        title = item.get("name") or item.get("original_name")
        release_date = item.get("first_air_date")
    return {
        "id": f"{media_type}:{item.get('id')}",
        "title": title or UNTITLED,
        "mediaType": media_type,
        "posterUrl": poster_url(item.get("poster_path")),
        "overview": item.get("overview") or None,
        "releaseDate": release_date or None,
        "voteAverage": item.get("vote_average"),
    }


def normalize_search_response(data: dict, search_type: str) -> dict:
    results = []
    for item in data.get("results") or []:
        media_type = item.get("media_type") if search_type == "multi" else search_type
        # Multi search also returns people.
        if media_type not in ("movie", "tv"):
            continue
        results.append(normalize_result(item, media_type))
    return {
        "page": int(data.get("page") or 1),
        "totalPages": int(data.get("total_pages") or 0),
        "results": results,
    }
