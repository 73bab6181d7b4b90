import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from boxdsync.workflows.request import HttpResponse

Reply = Union[HttpResponse, List[HttpResponse]]


class FakeTransport:
    """Replays canned responses per URL and records every request."""

    def __init__(self, routes: Optional[Dict[str, Reply]] = None) -> None:
        self.routes: Dict[str, List[HttpResponse]] = {}
        self.calls: List[Tuple[str, Dict[str, str]]] = []
        for url, reply in (routes or {}).items():
            self.add(url, reply)

    def add(self, url: str, reply: Reply) -> None:
        queue = reply if isinstance(reply, list) else [reply]
        self.routes.setdefault(url, []).extend(queue)

    async def __call__(self, url: str, headers: Mapping[str, str]) -> HttpResponse:
        self.calls.append((url, dict(headers)))
        queue = self.routes.get(url)
        if not queue:
            return HttpResponse(status=404)
        # The last response for a URL is sticky so repeated fetches keep working.
        return queue.pop(0) if len(queue) > 1 else queue[0]

    @property
    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]


def redirect(location: str, status: int = 301) -> HttpResponse:
    return HttpResponse(status=status, headers={"Location": location})


def html_page(json_ld: Any = None, head: str = "") -> HttpResponse:
    script = ""
    if json_ld is not None:
        payload = json_ld if isinstance(json_ld, str) else json.dumps(json_ld)
        script = f'<script type="application/ld+json">{payload}</script>'
    html = f"<html><head>{head}{script}</head><body></body></html>"
    return HttpResponse(status=200, headers={"Content-Type": "text/html; charset=utf-8"}, text=html)


def movie_json_ld(url: str, **extra: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "@context": "http://schema.org",
        "@type": "Movie",
        "url": url,
        "name": "The Thing",
        "image": "https://a.ltrbxd.com/resized/the-thing-poster.jpg",
        "description": "Antarctic researchers meet a shape-shifting alien.",
        "director": [{"@type": "Person", "name": "John Carpenter"}],
        "genre": ["Horror", "Science Fiction"],
        "actors": [{"@type": "Person", "name": "Kurt Russell"}, {"@type": "Person", "name": "Keith David"}],
        "aggregateRating": {"@type": "AggregateRating", "ratingValue": 4.2},
        "productionCompany": [{"@type": "Organization", "name": "Universal Pictures"}],
        "countryOfOrigin": [{"@type": "Country", "name": "USA"}],
    }
    data.update(extra)
    return data
