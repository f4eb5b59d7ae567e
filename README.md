# journeysapi

A read-only HTTP API for public transport timetables. It reads a GTFS feed
(`agency.txt`, `routes.txt`, `stops.txt`, `trips.txt`, `stop_times.txt`,
`calendar.txt`, `calendar_dates.txt`, `shapes.txt`) together with a
`municipalities.txt` table (columns `id` and `name`), links the records into
lines, routes, journey patterns, journeys, stop points and municipalities, and
serves them as JSON. It needs nothing beyond the Python standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

The server is configured through the environment:

| Variable               | Meaning                                                        |
|------------------------|----------------------------------------------------------------|
| `JOURNEYS_BASE_URL`    | Base URL used in the links of every response (required)        |
| `JOURNEYS_GTFS_PATH`   | Directory holding the GTFS files (required)                    |
| `JOURNEYS_VA_BASE_URL` | Base URL for the `activityUrl` of journeys                     |
| `JOURNEYS_PORT`        | Port to listen on, 8080 by default                             |
| `MEMCACHED_URL`        | `host:port` of a memcached server; required unless the cache is disabled |

Start it with:

```
journeys start
```

Options of `start`:

- `--disable-cache` – do not cache responses in memcached
- `--dry-run` – load the data, log any problems met reading the files, then exit
- `--skip-validation` – accepted for compatibility; it changes nothing, since
  no validation is done (see below)

The server listens on all interfaces, compresses responses with gzip or
deflate when the client accepts it, adds CORS headers and answers `OPTIONS`
preflight requests directly. It stops on an interrupt (Ctrl-C).

Print the version with:

```
journeys version
```

## Endpoints

All endpoints answer `GET`; other methods get `405`, unknown paths `404`.

- `/v1/lines`, `/v1/lines/{name}`
- `/v1/routes`, `/v1/routes/{name}`
- `/v1/journey-patterns`, `/v1/journey-patterns/{name}`
- `/v1/journeys`, `/v1/journeys/{name}` (by trip id or activity id)
- `/v1/stop-points`, `/v1/stop-points/{name}`
- `/v1/municipalities`, `/v1/municipalities/{name}`

An unknown `{name}` gives an empty body, not an error. The journey list only
holds journeys whose calendar period includes today.

Query parameters filter the list endpoints, for example
`/v1/lines?description=vatiala` or
`/v1/stop-points?location=61,23:62,23.8` (a bounding box). The
`exclude-fields` parameter removes fields from each element, with dotted paths
reaching into nested objects and lists:
`/v1/stop-points?exclude-fields=name,municipality.url`.

Every response has the same envelope:

```json
{
  "status": "success",
  "data": {"headers": {"paging": {"startIndex": 0, "pageSize": 1, "moreData": false}}},
  "body": [ ... ]
}
```

## Using it as a library

```python
from journeysapi.repository import load_repository
from journeysapi.service import JourneysDataService
from journeysapi.app import JourneysApp

repository, errors = load_repository("path/to/gtfs")
service = JourneysDataService(repository)
app = JourneysApp(service, "http://localhost:8080/v1", "")

status, headers, body = app.handle("GET", "/v1/lines", "name=1")
```

`load_repository` does not raise on unreadable or malformed files; it returns
the problems it met alongside whatever it could build. The services in
`journeysapi.service` offer `search(params)` and `get_one_by_id(entity_id)`,
the latter raising `journeysapi.model.NoSuchElementError` for unknown ids.

`JourneysApp` is a WSGI application. Wrap it with
`journeysapi.server.cors_middleware`, optionally with
`journeysapi.cache.create_cache_middleware(journeysapi.cache.MemcachedClient(address), app)`
(which stores successful responses keyed by request URL), and run it with
`journeysapi.server.serve`, which adds compression.

## What it does not do

- It does not validate the GTFS data (references between trips, routes,
  calendars, shapes and stops are not checked); records that cannot be linked
  are skipped and logged.
- `agency.txt` is read but not used for anything served.
- There is no paging: every response holds all matching elements.