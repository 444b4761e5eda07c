import os
import unittest
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient

from better_movies import tmdb
from better_movies.main import app

MULTI_PAYLOAD = {
    "page": 1,
    "total_pages": 3,
    "results": [
        {
            "id": 299536,
            "media_type": "movie",
            "title": "Avengers: Infinity War",
            "poster_path": "/7WsyChQLEftFiDOVTGkv3hFpyyt.jpg",
            "overview": "The Avengers assemble.",
            "release_date": "2018-04-25",
            "vote_average": 8.2,
        },
        {
            "id": 1399,
            "media_type": "tv",
            "name": "Game of Thrones",
            "poster_path": None,
            "overview": "",
            "first_air_date": "2011-04-17",
            "vote_average": 8.4,
        },
        {"id": 3223, "media_type": "person", "name": "Robert Downey Jr."},
    ],
}


class TestSearchNormalization(unittest.TestCase):
    def test_multi_results_are_flattened(self) -> None:
        data = tmdb.normalize_search_response(MULTI_PAYLOAD, "multi")
        self.assertEqual(data["page"], 1)
        self.assertEqual(data["totalPages"], 3)
        self.assertEqual([item["id"] for item in data["results"]], ["movie:299536", "tv:1399"])

        movie, show = data["results"]
        self.assertEqual(movie["title"], "Avengers: Infinity War")
        self.assertEqual(movie["mediaType"], "movie")
        self.assertTrue(movie["posterUrl"].endswith("/7WsyChQLEftFiDOVTGkv3hFpyyt.jpg"))
        self.assertEqual(movie["releaseDate"], "2018-04-25")
        self.assertEqual(show["title"], "Game of Thrones")
        self.assertIsNone(show["posterUrl"])
        self.assertIsNone(show["overview"])
        self.assertEqual(show["releaseDate"], "2011-04-17")

    def test_typed_search_uses_requested_type(self) -> None:
        payload = {"page": 2, "total_pages": 2, "results": [{"id": 66732, "name": "Stranger Things"}]}
        data = tmdb.normalize_search_response(payload, "tv")
        self.assertEqual(data["results"][0]["id"], "tv:66732")
        self.assertEqual(data["results"][0]["mediaType"], "tv")

    def test_missing_title_falls_back(self) -> None:
        data = tmdb.normalize_search_response({"results": [{"id": 1}]}, "movie")
        self.assertEqual(data["results"][0]["title"], tmdb.UNTITLED)
        self.assertEqual(data["totalPages"], 0)


class TestSearchEndpoint(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def test_search_proxies_and_normalizes(self) -> None:
        fake = AsyncMock(return_value=MULTI_PAYLOAD)
        with patch("better_movies.tmdb._get", fake):
            r = self.client.get("/api/tmdb/search", params={"q": "avengers"})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(len(r.json()["results"]), 2)
        path, params = fake.await_args.args
        self.assertEqual(path, "/search/multi")
        self.assertEqual(params["query"], "avengers")
        self.assertEqual(params["include_adult"], "false")

    def test_empty_query_is_400(self) -> None:
        self.assertEqual(self.client.get("/api/tmdb/search", params={"q": "  "}).status_code, 400)
        self.assertEqual(self.client.get("/api/tmdb/search").status_code, 400)

    def test_invalid_type_is_400(self) -> None:
        r = self.client.get("/api/tmdb/search", params={"q": "x", "type": "person"})
        self.assertEqual(r.status_code, 400)

    def test_missing_api_key_is_500(self) -> None:
        with patch.dict(os.environ, {"TMDB_API_KEY": ""}):
            r = self.client.get("/api/tmdb/search", params={"q": "x"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json()["detail"], "TMDB API key is not configured")

    def test_upstream_status_is_forwarded(self) -> None:
        request = httpx.Request("GET", f"{tmdb.BASE_URL}/search/movie")
        response = httpx.Response(401, request=request, text="Invalid API key")
        error = httpx.HTTPStatusError("unauthorized", request=request, response=response)
        with patch("better_movies.tmdb._get", AsyncMock(side_effect=error)):
            r = self.client.get("/api/tmdb/search", params={"q": "x", "type": "movie"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["detail"], "Failed to fetch from TMDB API")


if __name__ == "__main__":
    unittest.main()
